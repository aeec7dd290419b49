# Overview: Pytest coverage for plan limits and the variant quota guard.

"""
Variant Quota Tests

Only Available, non-archived units count toward the plan ceiling.
"""

import pytest

from kickvault.errors import QuotaExceededError
from kickvault.models import Variant
from kickvault.services.plan_service import evaluate_quota, get_variant_limit, set_plan

from conftest import add_units


class TestEvaluateQuota:

    def test_rejects_request_over_remaining_slots(self):
        with pytest.raises(QuotaExceededError) as exc:
            evaluate_quota(95, 100, 10, "Free")

        assert exc.value.details["remaining"] == 5
        assert exc.value.details["attempted"] == 10
        assert "only 5 slots remain" in exc.value.message

    def test_accepts_request_that_fills_the_plan(self):
        check = evaluate_quota(95, 100, 5, "Free")
        assert check.allowed
        assert check.remaining == 5

    def test_message_at_limit(self):
        with pytest.raises(QuotaExceededError) as exc:
            evaluate_quota(100, 100, 1, "Free")
        assert "Variant limit reached" in exc.value.message

    @pytest.mark.parametrize("code,limit", [
        ("free", 100), ("individual", 500), ("team", 1500), ("store", 5000), ("unknown", 100), (None, 100),
    ])
    def test_plan_limits(self, code, limit):
        assert get_variant_limit(code) == limit


class TestInventoryQuota:

    def test_add_blocked_at_95_of_100(self, client, headers_a):
        assert add_units(client, headers_a, quantity=95).status_code == 201

        rejected = add_units(client, headers_a, quantity=10)
        assert rejected.status_code == 403
        assert rejected.json["success"] is False
        assert rejected.json["details"]["remaining"] == 5

        accepted = add_units(client, headers_a, quantity=5)
        assert accepted.status_code == 201

    def test_non_available_units_do_not_count(self, client, headers_a):
        assert add_units(client, headers_a, quantity=100, status="PreOrder").status_code == 201
        assert add_units(client, headers_a, quantity=100).status_code == 201

    def test_variant_limits_endpoint(self, client, headers_a):
        add_units(client, headers_a, quantity=3)
        add_units(client, headers_a, quantity=2, status="Reserved")

        response = client.get('/api/inventory/variant-limits', headers=headers_a)

        assert response.status_code == 200
        data = response.json["data"]
        assert data["current"] == 3
        assert data["limit"] == 100
        assert data["remaining"] == 97
        assert data["isAtLimit"] is False

    def test_status_change_into_available_is_checked(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a, quantity=100)
        add_units(client, headers_a, quantity=1, status="Reserved", size="12")
        reserved = db_session.query(Variant).filter_by(owner_id=owner_a.id, status="Reserved").one()

        response = client.patch(f'/api/variants/{reserved.id}', json={"status": "Available"}, headers=headers_a)

        assert response.status_code == 403

    def test_restore_is_checked(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a, quantity=100)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id, serial_number=1).one()
        assert client.post('/api/variants/archive', json={"variantIds": [variant.id]}, headers=headers_a).status_code == 200
        add_units(client, headers_a, quantity=1)

        response = client.post(f'/api/variants/{variant.id}/restore', headers=headers_a)

        assert response.status_code == 403

    def test_upgrade_raises_ceiling(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a, quantity=100)
        assert add_units(client, headers_a, quantity=1).status_code == 403

        set_plan(owner_a, "individual")

        assert add_units(client, headers_a, quantity=1).status_code == 201

    def test_set_plan_rejects_unknown_code(self, db_session, owner_a):
        with pytest.raises(ValueError):
            set_plan(owner_a, "platinum")
