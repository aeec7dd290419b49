# Overview: Pytest coverage for consignor payout splits and payout processing.

"""
Consignor Payout Tests

- Split arithmetic for every payout method
- Consignor CRUD validation
- Payout processing settles whole pending sales oldest-first
"""

from decimal import Decimal

import pytest

from kickvault.errors import ValidationError
from kickvault.models import ConsignmentSale, PayoutTransaction, Variant
from kickvault.services.payout_service import calculate_payout, validate_payout_settings
from kickvault.services import consignor_service

from conftest import add_units


class TestCalculatePayout:

    def test_percentage_split(self):
        split = calculate_payout(
            sale_price_cents=10000, cost_price_cents=4000,
            payout_method="percentage_split", commission_rate=Decimal("20"),
        )
        assert split.consignor_payout_cents == 8000
        assert split.store_commission_cents == 2000

    def test_cost_plus_fixed(self):
        split = calculate_payout(
            sale_price_cents=10000, cost_price_cents=5000,
            payout_method="cost_plus_fixed", fixed_markup_cents=2000,
        )
        assert split.consignor_payout_cents == 7000
        assert split.store_commission_cents == 3000

    def test_cost_price(self):
        split = calculate_payout(sale_price_cents=10000, cost_price_cents=6500, payout_method="cost_price")
        assert (split.consignor_payout_cents, split.store_commission_cents) == (6500, 3500)

    def test_cost_plus_percentage_rounds_half_up(self):
        split = calculate_payout(
            sale_price_cents=10000, cost_price_cents=3333,
            payout_method="cost_plus_percentage", markup_percentage=Decimal("15"),
        )
        # 3333 * 1.15 = 3832.95
        assert split.consignor_payout_cents == 3833
        assert split.store_commission_cents == 6167

    def test_store_loss_is_reported_not_clamped(self):
        split = calculate_payout(
            sale_price_cents=5000, cost_price_cents=6000, payout_method="cost_price",
        )
        assert split.store_commission_cents == -1000
        assert split.is_store_loss

    @pytest.mark.parametrize("method,kwargs", [
        ("percentage_split", {"commission_rate": Decimal("17.5")}),
        ("cost_price", {}),
        ("cost_plus_fixed", {"fixed_markup_cents": 1234}),
        ("cost_plus_percentage", {"markup_percentage": Decimal("33.33")}),
    ])
    def test_payout_plus_commission_equals_sale_price(self, method, kwargs):
        for sale, cost in [(9999, 4321), (1, 0), (250000, 199999)]:
            split = calculate_payout(sale_price_cents=sale, cost_price_cents=cost, payout_method=method, **kwargs)
            assert split.consignor_payout_cents + split.store_commission_cents == sale

    def test_unknown_method(self):
        with pytest.raises(ValidationError):
            calculate_payout(sale_price_cents=100, cost_price_cents=50, payout_method="barter")


class TestPayoutSettings:

    def test_percentage_split_requires_rate_in_range(self):
        assert validate_payout_settings("percentage_split", Decimal("120")) == [
            "commission_rate must be between 0 and 100"
        ]

    def test_fixed_markup_required(self):
        assert validate_payout_settings("cost_plus_fixed", Decimal("20"), None) == [
            "fixed_markup_cents is required for cost_plus_fixed"
        ]

    def test_valid(self):
        assert validate_payout_settings("cost_plus_percentage", Decimal("20"), None, Decimal("10")) == []


class TestConsignorRoutes:

    def test_create_and_list(self, client, headers_a):
        response = client.post('/api/consignors', json={
            "name": "Jordan Reyes",
            "email": "jordan@example.com",
            "commission_rate": "25",
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json["payout_method"] == "percentage_split"

        listing = client.get('/api/consignors', headers=headers_a)
        assert listing.status_code == 200
        assert listing.json["total"] == 1
        assert listing.json["consignors"][0]["name"] == "Jordan Reyes"

    def test_invalid_payout_configuration(self, client, headers_a):
        response = client.post('/api/consignors', json={
            "name": "Sam",
            "payout_method": "cost_plus_fixed",
        }, headers=headers_a)
        assert response.status_code == 400
        assert "fixed_markup_cents is required for cost_plus_fixed" in response.json["details"]["errors"]

    def test_archive_blocked_while_units_held(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={"name": "Sam"}, headers=headers_a).json["id"]
        add_units(client, headers_a, ownerType="consignor", consignorId=consignor_id)

        response = client.delete(f'/api/consignors/{consignor_id}', headers=headers_a)

        assert response.status_code == 409

    def test_units_for_unknown_consignor_rejected(self, client, headers_a):
        response = add_units(client, headers_a, ownerType="consignor", consignorId=999)
        assert response.status_code == 400

    def test_permanent_delete_requires_archive(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={"name": "Sam"}, headers=headers_a).json["id"]

        assert client.delete(f'/api/consignors/{consignor_id}?permanent=true', headers=headers_a).status_code == 409
        assert client.delete(f'/api/consignors/{consignor_id}', headers=headers_a).status_code == 200
        response = client.delete(f'/api/consignors/{consignor_id}?permanent=true', headers=headers_a)
        assert response.status_code == 200
        assert response.json["deleted"] is True

    def test_restore(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={"name": "Sam"}, headers=headers_a).json["id"]
        client.delete(f'/api/consignors/{consignor_id}', headers=headers_a)

        response = client.patch(f'/api/consignors/{consignor_id}', json={"action": "restore"}, headers=headers_a)

        assert response.status_code == 200
        assert response.json["is_archived"] is False
        assert response.json["status"] == "active"

    def test_archive_marks_inactive(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={"name": "Sam"}, headers=headers_a).json["id"]

        archived = client.delete(f'/api/consignors/{consignor_id}', headers=headers_a)

        assert archived.status_code == 200
        fetched = client.get(f'/api/consignors/{consignor_id}', headers=headers_a).json
        assert fetched["status"] == "inactive"
        assert fetched["is_archived"] is True


def _sell_consigned(client, headers, consignor_id, sold_price, size):
    add = add_units(client, headers, size=size, ownerType="consignor", consignorId=consignor_id, costPrice="40.00")
    serial = add.json["data"]["serialNumbers"][0]
    variant_id = client.get(f'/api/variants/by-serial/{serial}', headers=headers).json["id"]
    response = client.post('/api/sales', json={
        "items": [{"variantId": variant_id, "soldPrice": sold_price}],
    }, headers=headers)
    assert response.status_code == 201
    return response.json["data"]


class TestProcessPayout:

    @pytest.fixture
    def consignor_id(self, client, headers_a):
        return client.post('/api/consignors', json={
            "name": "Jordan", "commission_rate": "20",
        }, headers=headers_a).json["id"]

    def test_sale_creates_pending_consignment_row(self, client, db_session, headers_a, consignor_id):
        sale = _sell_consigned(client, headers_a, consignor_id, "100.00", "9")

        row = db_session.query(ConsignmentSale).filter_by(sale_id=sale["id"]).one()
        assert row.payout_status == "pending"
        assert row.consignor_payout_cents == 8000
        assert row.store_commission_cents == 2000
        assert sale["net_profit_cents"] == 2000

    def test_settles_oldest_first_within_amount(self, client, db_session, headers_a, owner_a, consignor_id):
        _sell_consigned(client, headers_a, consignor_id, "100.00", "9")   # payout 80.00
        _sell_consigned(client, headers_a, consignor_id, "50.00", "10")   # payout 40.00
        _sell_consigned(client, headers_a, consignor_id, "200.00", "11")  # payout 160.00

        response = client.post(f'/api/consignors/{consignor_id}/process-payout', json={
            "amount": "130.00", "method": "PayPal",
        }, headers=headers_a)

        assert response.status_code == 200
        assert response.json["processed_amount_cents"] == 12000
        assert response.json["updated_sales"] == 2
        assert response.json["remaining_pending_cents"] == 16000
        assert response.json["unapplied_amount_cents"] == 1000

        statuses = [
            row.payout_status for row in
            db_session.query(ConsignmentSale).order_by(ConsignmentSale.id.asc()).all()
        ]
        assert statuses == ["paid", "paid", "pending"]
        transaction = db_session.query(PayoutTransaction).one()
        assert transaction.total_amount_cents == 12000

    def test_amount_above_pending_total_rejected(self, client, headers_a, consignor_id):
        _sell_consigned(client, headers_a, consignor_id, "100.00", "9")

        response = client.post(f'/api/consignors/{consignor_id}/process-payout', json={"amount": "80.01"}, headers=headers_a)

        assert response.status_code == 400

    def test_no_pending_sales(self, app, db_session, owner_a, consignor_id):
        with pytest.raises(ValidationError):
            consignor_service.process_payout(owner_id=owner_a.id, consignor_id=consignor_id, amount_cents=100)

    def test_amount_must_be_positive(self, client, headers_a, consignor_id):
        response = client.post(f'/api/consignors/{consignor_id}/process-payout', json={"amount": 0}, headers=headers_a)
        assert response.status_code == 400

    def test_consignor_items_and_stats(self, client, db_session, headers_a, consignor_id):
        _sell_consigned(client, headers_a, consignor_id, "100.00", "9")
        add_units(client, headers_a, size="12", ownerType="consignor", consignorId=consignor_id)

        items = client.get(f'/api/consignors/{consignor_id}/items', headers=headers_a).json
        assert items["summary"]["total_items"] == 2
        assert items["summary"]["available_items"] == 1

        stats = client.get('/api/consignors/stats', headers=headers_a).json["summary"]
        assert stats["total_pending_payouts_cents"] == 8000
        assert stats["total_sales_cents"] == 10000
