# Overview: Flask API routes for individual inventory units (variants).

# backend/kickvault/routes/variants.py
"""
Variant routes.

A variant is one physical unit with a per-owner serial number. Units are
created through POST /api/inventory; these routes edit, archive, restore,
relocate, look up by serial and print labels.
"""
from flask import Blueprint, request, g, send_file, current_app
from io import BytesIO

from ..services import inventory_service
from ..services.label_service import LABEL_TYPES, MAX_LABELS_PER_SHEET, render_label_sheet, render_variant_label
from ..models import Variant
from ..models.inventory import VARIANT_STATUSES, OWNER_TYPES
from ..errors import ServiceError, ValidationError, error_response
from ..validation import ModelValidationPolicy, validate_payload, enforce_price_cents
from ..decorators import require_auth

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields=set(inventory_service.VARIANT_PATCH_FIELDS),
    choices={
        "status": set(VARIANT_STATUSES),
        "owner_type": set(OWNER_TYPES),
    },
)

variants_bp = Blueprint("variants", __name__, url_prefix="/api/variants")


def _variant_ids(payload: dict) -> list[str]:
    ids = payload.get("variantIds")
    if not isinstance(ids, list) or not ids or not all(isinstance(i, str) for i in ids):
        raise ValidationError("variantIds must be a non-empty list of ids")
    return ids


@variants_bp.get("/<variant_id>")
@require_auth
def get_variant_route(variant_id: str):
    try:
        variant = inventory_service.get_variant(g.owner_id, variant_id)
    except ServiceError as e:
        return error_response(e)
    return variant.to_dict(include_product=True), 200


@variants_bp.get("/by-serial/<int:serial_number>")
@require_auth
def get_variant_by_serial_route(serial_number: int):
    """Scan lookup: resolve a label's serial number to the unit."""
    try:
        variant = inventory_service.get_variant_by_serial(g.owner_id, serial_number)
    except ServiceError as e:
        return error_response(e)
    return variant.to_dict(include_product=True), 200


@variants_bp.patch("/<variant_id>")
@require_auth
def update_variant_route(variant_id: str):
    """
    Edit a unit. Fields are column names; prices are integer cents.

    Moving a unit into Available is quota-checked (403 at the limit).
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Variant, payload=payload, policy=VARIANT_POLICY, partial=True)
        enforce_price_cents(patch, "cost_price_cents", "sale_price_cents")
        variant = inventory_service.update_variant(owner=g.current_user, variant_id=variant_id, patch=patch)
    except ServiceError as e:
        return error_response(e)

    return variant.to_dict(include_product=True), 200


@variants_bp.post("/archive")
@require_auth
def archive_variants_route():
    payload = request.get_json(silent=True) or {}
    try:
        archived = inventory_service.archive_variants(g.owner_id, _variant_ids(payload))
    except ServiceError as e:
        return error_response(e)
    return {"ok": True, "archived": archived}, 200


@variants_bp.post("/<variant_id>/restore")
@require_auth
def restore_variant_route(variant_id: str):
    try:
        variant = inventory_service.restore_variant(owner=g.current_user, variant_id=variant_id)
    except ServiceError as e:
        return error_response(e)
    return variant.to_dict(include_product=True), 200


@variants_bp.post("/move-location")
@require_auth
def move_location_route():
    """Body: {variantIds: [...], location: "Shelf B"}"""
    payload = request.get_json(silent=True) or {}
    try:
        moved = inventory_service.move_variants_location(
            g.owner_id, _variant_ids(payload), payload.get("location")
        )
    except ServiceError as e:
        return error_response(e)
    return {"ok": True, "moved": moved}, 200


def _label_options() -> dict:
    label_type = request.args.get("type", "store")
    if label_type not in LABEL_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(LABEL_TYPES)}")
    owner = g.current_user
    return {
        "label_type": label_type,
        "currency": owner.currency or "USD",
        "store_name": owner.username,
    }


@variants_bp.get("/<variant_id>/label")
@require_auth
def variant_label_route(variant_id: str):
    """PNG label with a QR code of the serial number. ?type= store|inventory|shipping|consignment"""
    try:
        options = _label_options()
        variant = inventory_service.get_variant(g.owner_id, variant_id)
    except ServiceError as e:
        return error_response(e)

    try:
        png = render_variant_label(variant, **options)
    except Exception:
        current_app.logger.exception("Failed to render label for variant %s", variant_id)
        return {"error": "Internal server error"}, 500

    return send_file(
        BytesIO(png),
        mimetype="image/png",
        download_name=f"label-{variant.serial_number}.png",
    )


@variants_bp.get("/labels")
@require_auth
def variant_labels_bulk_route():
    """
    One PDF, one label per page.

    Query params:
    - ids: comma-separated variant ids (required)
    - type: store | inventory | shipping | consignment (default store)
    """
    ids = [i.strip() for i in request.args.get("ids", "").split(",") if i.strip()]
    try:
        options = _label_options()
        variants = inventory_service.get_variants_for_labels(g.owner_id, ids, limit=MAX_LABELS_PER_SHEET)
    except ServiceError as e:
        return error_response(e)

    try:
        pdf = render_label_sheet(variants, **options)
    except Exception:
        current_app.logger.exception("Failed to render %d labels", len(variants))
        return {"error": "Internal server error"}, 500

    return send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        download_name=f"labels-{options['label_type']}.pdf",
    )
