# Overview: Pytest coverage for saved profit-split templates and their use at checkout.

"""
Profit Template Tests

- Distributions follow the checkout rules (non-empty, >= 0, total 100)
- Only the owner's own avatars can appear in a template
- Names are unique per owner, case-insensitively
- A sale can take its split from a template
"""

import pytest

from kickvault.services.plan_service import set_plan

from conftest import add_units


def _main_avatar_id(client, headers):
    return client.get('/api/avatars', headers=headers).json["data"][0]["id"]


class TestProfitTemplates:

    @pytest.fixture
    def partner_id(self, client, db_session, headers_a, owner_a):
        set_plan(owner_a, "team")
        return client.post('/api/avatars', json={"name": "Partner"}, headers=headers_a).json["data"]["id"]

    def test_create_and_list(self, client, headers_a, partner_id):
        main_id = _main_avatar_id(client, headers_a)

        response = client.post('/api/profit-templates', json={
            "name": "70/30",
            "description": "Main keeps most",
            "distributions": [
                {"avatarId": main_id, "percentage": 70},
                {"avatar_id": partner_id, "percentage": "30"},
            ],
        }, headers=headers_a)

        assert response.status_code == 201
        data = response.json["data"]
        assert [(d["avatar_id"], d["percentage"]) for d in data["distributions"]] == [
            (main_id, 70.0), (partner_id, 30.0),
        ]
        listing = client.get('/api/profit-templates', headers=headers_a).json["data"]
        assert [t["name"] for t in listing] == ["70/30"]

    def test_total_must_be_100(self, client, headers_a):
        main_id = _main_avatar_id(client, headers_a)

        response = client.post('/api/profit-templates', json={
            "name": "Short", "distributions": [{"avatarId": main_id, "percentage": 90}],
        }, headers=headers_a)

        assert response.status_code == 400
        assert response.json["success"] is False
        assert response.json["details"]["total_percentage"] == 90.0

    def test_empty_distribution_rejected(self, client, headers_a):
        response = client.post('/api/profit-templates', json={"name": "Empty", "distributions": []}, headers=headers_a)
        assert response.status_code == 400

    def test_name_required(self, client, headers_a):
        main_id = _main_avatar_id(client, headers_a)
        response = client.post('/api/profit-templates', json={
            "name": "  ", "distributions": [{"avatarId": main_id, "percentage": 100}],
        }, headers=headers_a)
        assert response.status_code == 400

    def test_foreign_avatar_rejected(self, client, headers_a, headers_b):
        foreign = _main_avatar_id(client, headers_b)

        response = client.post('/api/profit-templates', json={
            "name": "Sneaky", "distributions": [{"avatarId": foreign, "percentage": 100}],
        }, headers=headers_a)

        assert response.status_code == 400
        assert response.json["details"]["avatar_ids"] == [foreign]

    def test_duplicate_name_conflicts(self, client, headers_a):
        main_id = _main_avatar_id(client, headers_a)
        body = {"name": "Solo", "distributions": [{"avatarId": main_id, "percentage": 100}]}
        assert client.post('/api/profit-templates', json=body, headers=headers_a).status_code == 201

        response = client.post('/api/profit-templates', json={**body, "name": "SOLO"}, headers=headers_a)

        assert response.status_code == 409

    def test_update_replaces_distributions(self, client, headers_a, partner_id):
        main_id = _main_avatar_id(client, headers_a)
        template_id = client.post('/api/profit-templates', json={
            "name": "Solo", "distributions": [{"avatarId": main_id, "percentage": 100}],
        }, headers=headers_a).json["data"]["id"]

        response = client.put(f'/api/profit-templates/{template_id}', json={
            "distributions": [
                {"avatarId": main_id, "percentage": 50},
                {"avatarId": partner_id, "percentage": 50},
            ],
        }, headers=headers_a)

        assert response.status_code == 200
        assert response.json["data"]["name"] == "Solo"
        assert len(response.json["data"]["distributions"]) == 2

    def test_delete_and_tenant_scope(self, client, headers_a, headers_b):
        main_id = _main_avatar_id(client, headers_a)
        template_id = client.post('/api/profit-templates', json={
            "name": "Solo", "distributions": [{"avatarId": main_id, "percentage": 100}],
        }, headers=headers_a).json["data"]["id"]

        assert client.get(f'/api/profit-templates/{template_id}', headers=headers_b).status_code == 404
        assert client.delete(f'/api/profit-templates/{template_id}', headers=headers_b).status_code == 404
        assert client.delete(f'/api/profit-templates/{template_id}', headers=headers_a).status_code == 200
        assert client.get(f'/api/profit-templates/{template_id}', headers=headers_a).status_code == 404

    def test_avatar_in_template_cannot_be_deleted(self, client, headers_a, partner_id):
        main_id = _main_avatar_id(client, headers_a)
        client.post('/api/profit-templates', json={
            "name": "Split",
            "distributions": [
                {"avatarId": main_id, "percentage": 50},
                {"avatarId": partner_id, "percentage": 50},
            ],
        }, headers=headers_a)

        response = client.delete(f'/api/avatars/{partner_id}', headers=headers_a)

        assert response.status_code == 409


class TestTemplateAtCheckout:

    def test_sale_uses_template_split(self, client, db_session, headers_a, owner_a):
        set_plan(owner_a, "team")
        partner = client.post('/api/avatars', json={"name": "Partner"}, headers=headers_a).json["data"]["id"]
        main_id = _main_avatar_id(client, headers_a)
        template_id = client.post('/api/profit-templates', json={
            "name": "60/40",
            "distributions": [
                {"avatarId": main_id, "percentage": 60},
                {"avatarId": partner, "percentage": 40},
            ],
        }, headers=headers_a).json["data"]["id"]
        add_units(client, headers_a)
        variant_id = client.get('/api/variants/by-serial/1', headers=headers_a).json["id"]

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "180.00"}],
            "profitTemplateId": template_id,
        }, headers=headers_a)

        assert response.status_code == 201
        amounts = {d["avatar_id"]: d["amount_cents"] for d in response.json["data"]["profit_distribution"]}
        assert amounts == {main_id: 6000, partner: 4000}

    def test_explicit_distribution_wins(self, client, headers_a):
        main_id = _main_avatar_id(client, headers_a)
        add_units(client, headers_a)
        variant_id = client.get('/api/variants/by-serial/1', headers=headers_a).json["id"]

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
            "profitDistribution": [{"avatarId": main_id, "percentage": 100}],
            "profitTemplateId": 999,
        }, headers=headers_a)

        assert response.status_code == 201

    def test_unknown_template_rejected(self, client, headers_a):
        add_units(client, headers_a)
        variant_id = client.get('/api/variants/by-serial/1', headers=headers_a).json["id"]

        response = client.post('/api/sales', json={
            "items": [{"variantId": variant_id, "soldPrice": "100.00"}],
            "profitTemplateId": 999,
        }, headers=headers_a)

        assert response.status_code == 400
