# Overview: Pytest coverage for serial allocation and unit materialization.

"""
Serial Allocation Tests

Serial numbers are unique per owner, contiguous within a request, strictly
increasing across requests, and never reused after a unit is deleted.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from kickvault.extensions import db
from kickvault.models import Product, Variant
from kickvault.errors import SerialAllocationError
from kickvault.services import inventory_service
from kickvault.services.inventory_service import VariantTemplate, materialize_variants, add_inventory
from kickvault.services.serial_service import next_serial_number, allocate_serial_range, current_max_serial

from conftest import add_units, inventory_payload


class TestMaterializer:

    def test_quantity_expands_to_contiguous_units(self, db_session, owner_a):
        product = Product(owner_id=owner_a.id, sku="SKU-1", name="Sample")
        db_session.add(product)
        db_session.flush()

        variants = materialize_variants(
            owner_id=owner_a.id,
            product=product,
            template=VariantTemplate(size="9.5", location="Shelf A"),
            quantity=3,
            start_serial=41,
        )

        assert [v.serial_number for v in variants] == [41, 42, 43]
        assert len({v.id for v in variants}) == 3
        assert all(v.size == "9.5" and v.location == "Shelf A" for v in variants)
        assert all(v.variant_sku == "SKU-1-9.5" for v in variants)

    def test_zero_quantity_rejected(self, db_session, owner_a):
        product = Product(owner_id=owner_a.id, sku="SKU-1", name="Sample")
        with pytest.raises(ValueError):
            materialize_variants(
                owner_id=owner_a.id,
                product=product,
                template=VariantTemplate(size="9"),
                quantity=0,
                start_serial=1,
            )


class TestSerialService:

    def test_first_serial_is_one(self, db_session, owner_a):
        assert current_max_serial(owner_a.id) == 0
        assert next_serial_number(owner_a.id) == 1

    def test_allocation_advances_high_water_mark(self, db_session, owner_a):
        assert allocate_serial_range(owner_a.id, 5) == 1
        assert owner_a.last_serial_number == 5
        assert allocate_serial_range(owner_a.id, 2) == 6
        assert owner_a.last_serial_number == 7


class TestAddInventorySerials:

    def test_serials_contiguous_within_and_across_requests(self, client, headers_a):
        first = add_units(client, headers_a, quantity=3)
        second = add_units(client, headers_a, quantity=2, size="11")

        assert first.status_code == 201
        assert first.json["data"]["serialNumbers"] == [1, 2, 3]
        assert first.json["data"]["productCreated"] is True
        assert second.status_code == 201
        assert second.json["data"]["serialNumbers"] == [4, 5]
        assert second.json["data"]["productCreated"] is False

    def test_multiple_rows_share_one_run(self, client, headers_a):
        rows = [
            {"size": "9", "quantity": 2},
            {"size": "10", "quantity": 1},
            {"size": "11", "quantity": 2},
        ]
        response = client.post('/api/inventory', json=inventory_payload(rows=rows), headers=headers_a)

        assert response.status_code == 201
        assert response.json["data"]["variantsAdded"] == 5
        assert response.json["data"]["serialNumbers"] == [1, 2, 3, 4, 5]

    def test_owners_have_independent_sequences(self, client, headers_a, headers_b):
        add_units(client, headers_a, quantity=4)
        response = add_units(client, headers_b, quantity=1)

        assert response.json["data"]["serialNumbers"] == [1]

    def test_deleted_serial_is_not_reused(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a, quantity=3)
        last = db_session.query(Variant).filter_by(owner_id=owner_a.id, serial_number=3).one()
        db_session.delete(last)
        db_session.commit()

        response = add_units(client, headers_a, quantity=1)

        assert response.json["data"]["serialNumbers"] == [4]

    def test_retry_exhaustion_returns_conflict(self, client, db_session, headers_a, owner_a, monkeypatch):
        add_units(client, headers_a, quantity=1)
        calls = []

        def colliding_range(owner_id, count):
            calls.append(count)
            return 1

        monkeypatch.setattr(inventory_service, "allocate_serial_range", colliding_range)

        response = add_units(client, headers_a, quantity=1)

        assert response.status_code == 409
        assert response.json["success"] is False
        assert len(calls) == 3
        assert db_session.query(Variant).filter_by(owner_id=owner_a.id).count() == 1

    def test_retry_exhaustion_raises_from_service(self, app, db_session, owner_a, monkeypatch):
        add_inventory(owner=owner_a, payload=inventory_payload())
        monkeypatch.setattr(inventory_service, "allocate_serial_range", lambda owner_id, count: 1)

        with pytest.raises(SerialAllocationError):
            add_inventory(owner=owner_a, payload=inventory_payload(size="12"))

    def test_failed_attempt_keeps_new_product_out(self, client, db_session, headers_a, owner_a, monkeypatch):
        add_units(client, headers_a, quantity=1)
        monkeypatch.setattr(inventory_service, "allocate_serial_range", lambda owner_id, count: 1)

        response = add_units(client, headers_a, sku="NEW-SKU", quantity=1)

        assert response.status_code == 409
        assert db.session.query(Product).filter_by(owner_id=owner_a.id, sku="NEW-SKU").count() == 0

    def test_single_collision_is_retried_transparently(self, client, db_session, headers_a, owner_a, monkeypatch):
        add_units(client, headers_a, quantity=1)
        real_allocate = inventory_service.allocate_serial_range
        calls = []

        def collide_once(owner_id, count):
            calls.append(count)
            if len(calls) == 1:
                return 1
            return real_allocate(owner_id, count)

        monkeypatch.setattr(inventory_service, "allocate_serial_range", collide_once)

        response = add_units(client, headers_a, quantity=2, size="11")

        assert response.status_code == 201
        assert response.json["data"]["serialNumbers"] == [2, 3]
        assert len(calls) == 2
        assert db_session.query(Variant).filter_by(owner_id=owner_a.id).count() == 3

    def test_other_integrity_errors_are_not_retried(self, app, db_session, owner_a, monkeypatch):
        calls = []

        def broken_insert(owner_id, count):
            calls.append(count)
            raise IntegrityError("INSERT INTO variants", {}, Exception("NOT NULL constraint failed: variants.size"))

        monkeypatch.setattr(inventory_service, "allocate_serial_range", broken_insert)

        with pytest.raises(IntegrityError):
            add_inventory(owner=owner_a, payload=inventory_payload())

        assert len(calls) == 1
