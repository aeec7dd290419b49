# Overview: Pytest coverage for checkout totals, profit distribution and refunds.

"""
Sales Tests

- Profit distribution must total exactly 100%
- Totals: discount cap, percent and fixed fees, fee placement
- Recording marks units Sold; consignor units get a pending payout row
- Refunds return units to stock and cancel pending payout rows
"""

from decimal import Decimal

import pytest

from kickvault.errors import ValidationError
from kickvault.models import ConsignmentSale, SaleProfitDistribution, Variant
from kickvault.services.plan_service import set_plan
from kickvault.services.sales_service import (
    LineFigures, ProfitShare, compute_totals, split_profit, validate_profit_distribution,
)

from conftest import add_units


def _variant_ids(client, headers, response):
    ids = []
    for serial in response.json["data"]["serialNumbers"]:
        ids.append(client.get(f'/api/variants/by-serial/{serial}', headers=headers).json["id"])
    return ids


def _main_avatar_id(client, headers):
    return client.get('/api/avatars', headers=headers).json["data"][0]["id"]


class TestProfitDistribution:

    def test_rejects_total_below_100(self):
        with pytest.raises(ValidationError) as exc:
            validate_profit_distribution([
                {"avatarId": 1, "percentage": 60},
                {"avatarId": 2, "percentage": 39},
            ])
        assert "currently 99%" in exc.value.message

    def test_accepts_exact_100(self):
        shares = validate_profit_distribution([
            {"avatarId": 1, "percentage": 60},
            {"avatarId": 2, "percentage": "40"},
        ])
        assert [s.percentage for s in shares] == [Decimal("60"), Decimal("40")]

    def test_rejects_empty_list(self):
        with pytest.raises(ValidationError):
            validate_profit_distribution([])

    def test_rejects_missing_avatar(self):
        with pytest.raises(ValidationError) as exc:
            validate_profit_distribution([{"avatarId": "", "percentage": 100}])
        assert "avatar selected" in exc.value.message

    def test_rejects_negative_share(self):
        with pytest.raises(ValidationError):
            validate_profit_distribution([
                {"avatarId": 1, "percentage": 110},
                {"avatarId": 2, "percentage": -10},
            ])

    def test_last_share_absorbs_rounding(self):
        shares = [
            ProfitShare(avatar_id=1, percentage=Decimal("33.33")),
            ProfitShare(avatar_id=2, percentage=Decimal("33.33")),
            ProfitShare(avatar_id=3, percentage=Decimal("33.34")),
        ]
        amounts = split_profit(1001, shares)
        assert amounts == [334, 334, 333]
        assert sum(amounts) == 1001


class TestComputeTotals:

    def test_store_lines(self):
        totals = compute_totals([
            LineFigures(sold_price_cents=12000, cost_price_cents=8000),
            LineFigures(sold_price_cents=5000, cost_price_cents=3000),
        ])
        assert totals.subtotal_cents == 17000
        assert totals.total_amount_cents == 17000
        assert totals.total_cost_cents == 11000
        assert totals.net_profit_cents == 6000

    def test_discount_is_capped_at_subtotal(self):
        totals = compute_totals(
            [LineFigures(sold_price_cents=1000, cost_price_cents=400)],
            discount_cents=5000,
        )
        assert totals.discount_cents == 1000
        assert totals.total_amount_cents == 0
        assert totals.net_profit_cents == -400

    def test_percent_fee_reduces_profit(self):
        totals = compute_totals(
            [LineFigures(sold_price_cents=10000, cost_price_cents=6000)],
            fee_type="percent", fee_value=Decimal("2.9"), fee_applies_to="profit",
        )
        assert totals.payment_fee_cents == 290
        assert totals.total_amount_cents == 10000
        assert totals.net_profit_cents == 3710

    def test_fixed_fee_passed_to_customer(self):
        totals = compute_totals(
            [LineFigures(sold_price_cents=10000, cost_price_cents=6000)],
            fee_type="fixed", fee_value=Decimal("1.50"), fee_applies_to="cost",
        )
        assert totals.payment_fee_cents == 150
        assert totals.total_amount_cents == 10150
        assert totals.total_cost_cents == 6150
        assert totals.net_profit_cents == 4000

    def test_consigned_line_counts_commission_only(self):
        totals = compute_totals([
            LineFigures(
                sold_price_cents=10000, cost_price_cents=4000,
                consignor_payout_cents=8000, store_commission_cents=2000,
            ),
        ])
        assert totals.total_cost_cents == 8000
        assert totals.net_profit_cents == 2000


class TestRecordSale:

    def test_sale_marks_unit_sold(self, client, db_session, headers_a):
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "150.00"}],
            "customerName": "Walk-in",
        }, headers=headers_a)

        assert response.status_code == 201
        data = response.json["data"]
        assert data["total_amount_cents"] == 15000
        assert data["total_cost_cents"] == 8000
        assert data["net_profit_cents"] == 7000
        assert data["item_count"] == 1
        assert db_session.get(Variant, variant_id).status == "Sold"

    def test_default_distribution_goes_to_main(self, client, headers_a):
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]
        main_id = _main_avatar_id(client, headers_a)

        data = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
        }, headers=headers_a).json["data"]

        assert data["profit_distribution"] == [{
            "avatar_id": main_id,
            "avatar_name": "Main",
            "percentage": 100.0,
            "amount_cents": 2000,
        }]

    def test_split_between_avatars(self, client, db_session, headers_a, owner_a):
        set_plan(owner_a, "team")
        partner = client.post('/api/avatars', json={"name": "Partner"}, headers=headers_a).json["data"]["id"]
        main_id = _main_avatar_id(client, headers_a)
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "180.00"}],
            "profitDistribution": [
                {"avatarId": main_id, "percentage": 60},
                {"avatarId": partner, "percentage": 40},
            ],
        }, headers=headers_a)

        assert response.status_code == 201
        amounts = {d["avatar_id"]: d["amount_cents"] for d in response.json["data"]["profit_distribution"]}
        assert amounts == {main_id: 6000, partner: 4000}

    def test_distribution_not_totalling_100_rejected(self, client, db_session, headers_a):
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]
        main_id = _main_avatar_id(client, headers_a)

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
            "profitDistribution": [{"avatarId": main_id, "percentage": 99}],
        }, headers=headers_a)

        assert response.status_code == 400
        assert response.json["success"] is False
        assert db_session.get(Variant, variant_id).status == "Available"

    def test_sold_unit_cannot_be_sold_again(self, client, headers_a):
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]
        body = {"items": [{"variantId": variant_id, "soldPrice": "100.00"}]}
        assert client.post('/api/sales', json=body, headers=headers_a).status_code == 201

        response = client.post('/api/sales', json=body, headers=headers_a)

        assert response.status_code == 400
        assert "not available for sale" in response.json["details"]["errors"][0]

    def test_payment_type_fee_applied(self, client, headers_a):
        payment_type = client.post('/api/payment-types', json={
            "name": "Card", "fee_type": "percent", "fee_value": "3", "applies_to": "profit",
        }, headers=headers_a).json
        variant_id = _variant_ids(client, headers_a, add_units(client, headers_a))[0]

        data = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
            "paymentTypeId": payment_type["id"],
        }, headers=headers_a).json["data"]

        assert data["payment_fee_cents"] == 300
        assert data["net_profit_cents"] == 1700
        assert data["payment_type"]["name"] == "Card"

    def test_empty_sale_rejected(self, client, headers_a):
        response = client.post('/api/sales', json={"items": []}, headers=headers_a)
        assert response.status_code == 400

    def test_stats(self, client, headers_a):
        ids = _variant_ids(client, headers_a, add_units(client, headers_a, quantity=2))
        for variant_id in ids:
            client.post('/api/sales', json={
                "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
            }, headers=headers_a)

        stats = client.get('/api/sales/stats', headers=headers_a).json["data"]

        assert stats["sales_count"] == 2
        assert stats["items_sold"] == 2
        assert stats["total_revenue_cents"] == 20000
        assert stats["average_sale_cents"] == 10000


class TestRefunds:

    @pytest.fixture
    def consigned_sale(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={
            "name": "Jordan", "commission_rate": "20",
        }, headers=headers_a).json["id"]
        add = add_units(client, headers_a, ownerType="consignor", consignorId=consignor_id)
        variant_id = _variant_ids(client, headers_a, add)[0]
        sale = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
        }, headers=headers_a).json["data"]
        return consignor_id, variant_id, sale["id"]

    def test_refund_restores_unit_and_cancels_payout(self, client, db_session, headers_a, consigned_sale):
        _consignor_id, variant_id, sale_id = consigned_sale

        response = client.post(f'/api/sales/{sale_id}/refund', headers=headers_a)

        assert response.status_code == 200
        assert response.json["data"]["status"] == "refunded"
        assert db_session.get(Variant, variant_id).status == "Available"
        row = db_session.query(ConsignmentSale).filter_by(sale_id=sale_id).one()
        assert row.payout_status == "cancelled"

    def test_second_refund_conflicts(self, client, headers_a, consigned_sale):
        _consignor_id, _variant_id, sale_id = consigned_sale
        assert client.post(f'/api/sales/{sale_id}/refund', headers=headers_a).status_code == 200

        response = client.post(f'/api/sales/{sale_id}/refund', headers=headers_a)

        assert response.status_code == 409

    def test_refund_refused_after_payout(self, client, db_session, headers_a, consigned_sale):
        consignor_id, variant_id, sale_id = consigned_sale
        assert client.post(f'/api/consignors/{consignor_id}/process-payout', json={
            "amount": "80.00",
        }, headers=headers_a).status_code == 200

        response = client.post(f'/api/sales/{sale_id}/refund', headers=headers_a)

        assert response.status_code == 409
        assert db_session.get(Variant, variant_id).status == "Sold"

    def test_refunded_sales_excluded_from_stats(self, client, headers_a, consigned_sale):
        _consignor_id, _variant_id, sale_id = consigned_sale
        client.post(f'/api/sales/{sale_id}/refund', headers=headers_a)

        stats = client.get('/api/sales/stats', headers=headers_a).json["data"]

        assert stats["sales_count"] == 0
        assert stats["refunded_count"] == 1

    def test_distribution_rows_kept_on_refund(self, client, db_session, headers_a, consigned_sale):
        _consignor_id, _variant_id, sale_id = consigned_sale
        client.post(f'/api/sales/{sale_id}/refund', headers=headers_a)

        assert db_session.query(SaleProfitDistribution).filter_by(sale_id=sale_id).count() == 1
