# Overview: Pytest coverage for printable variant labels.

import re

import pytest

from kickvault.models import Variant
from kickvault.services import label_service
from kickvault.services.label_service import (
    LABEL_TYPES, build_qr, format_price, render_label_image, render_variant_label,
)

from conftest import add_units


def _pdf_pages(data: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page\b", data))


class TestLabelRendering:

    def test_renders_png(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id).one()

        png = render_variant_label(variant)

        assert png.startswith(b"\x89PNG")

    def test_qr_encodes_serial(self, client, db_session, headers_a, owner_a, monkeypatch):
        add_units(client, headers_a, quantity=2)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id, serial_number=2).one()
        encoded = []
        real_render_qr = label_service.render_qr

        def recording_render_qr(value):
            encoded.append(value)
            return real_render_qr(value)

        monkeypatch.setattr(label_service, "render_qr", recording_render_qr)

        render_variant_label(variant)

        assert encoded == ["2"]

    def test_qr_payload(self):
        qr = build_qr("1042")
        assert [chunk.data for chunk in qr.data_list] == [b"1042"]

    @pytest.mark.parametrize("label_type", LABEL_TYPES)
    def test_every_label_type_renders(self, client, db_session, headers_a, owner_a, label_type):
        consignor_id = client.post('/api/consignors', json={"name": "Jordan"}, headers=headers_a).json["id"]
        add_units(client, headers_a, ownerType="consignor", consignorId=consignor_id, location="Shelf A")
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id).one()

        image = render_label_image(variant, label_type=label_type, store_name="owner_a")

        assert image.size == (label_service.LABEL_WIDTH, label_service.LABEL_HEIGHT)

    def test_unknown_label_type(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id).one()

        with pytest.raises(ValueError):
            render_label_image(variant, label_type="poster")

    def test_format_price(self):
        assert format_price(12000) == "$120.00"
        assert format_price(123456, "EUR") == "EUR 1,234.56"


class TestLabelRoute:

    def test_label_download(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id).one()

        response = client.get(f'/api/variants/{variant.id}/label', headers=headers_a)

        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert response.data.startswith(b"\x89PNG")
        assert "label-1.png" in response.headers["Content-Disposition"]

    def test_invalid_type_rejected(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a)
        variant = db_session.query(Variant).filter_by(owner_id=owner_a.id).one()

        response = client.get(f'/api/variants/{variant.id}/label?type=poster', headers=headers_a)

        assert response.status_code == 400

    def test_unknown_variant(self, client, headers_a):
        assert client.get('/api/variants/does-not-exist/label', headers=headers_a).status_code == 404


class TestBulkLabels:

    def test_one_page_per_variant(self, client, db_session, headers_a, owner_a):
        add_units(client, headers_a, quantity=3)
        ids = [v.id for v in db_session.query(Variant).filter_by(owner_id=owner_a.id).all()]

        response = client.get(f'/api/variants/labels?ids={",".join(ids)}&type=inventory', headers=headers_a)

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")
        assert _pdf_pages(response.data) == 3

    def test_foreign_ids_skipped(self, client, db_session, headers_a, headers_b, owner_a, owner_b):
        add_units(client, headers_a)
        add_units(client, headers_b)
        mine = db_session.query(Variant).filter_by(owner_id=owner_a.id).one().id
        theirs = db_session.query(Variant).filter_by(owner_id=owner_b.id).one().id

        response = client.get(f'/api/variants/labels?ids={mine},{theirs}', headers=headers_a)
        assert response.status_code == 200
        assert _pdf_pages(response.data) == 1

        only_theirs = client.get(f'/api/variants/labels?ids={theirs}', headers=headers_a)
        assert only_theirs.status_code == 404

    def test_ids_required(self, client, headers_a):
        assert client.get('/api/variants/labels', headers=headers_a).status_code == 400
