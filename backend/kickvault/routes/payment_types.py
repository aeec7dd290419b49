# Overview: Flask API routes for payment types and their checkout fees.

from flask import Blueprint, request, g

from ..services import payment_type_service
from ..models import PaymentType
from ..models.sales import FEE_TYPES, FEE_APPLIES_TO
from ..errors import ServiceError, error_response
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth

PAYMENT_TYPE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "fee_type", "fee_value", "applies_to"},
    required_on_create={"name"},
    choices={
        "fee_type": set(FEE_TYPES),
        "applies_to": set(FEE_APPLIES_TO),
    },
)

payment_types_bp = Blueprint("payment_types", __name__, url_prefix="/api/payment-types")


@payment_types_bp.get("")
@require_auth
def list_payment_types_route():
    types = payment_type_service.list_payment_types(g.owner_id)
    return {"items": [t.to_dict() for t in types]}, 200


@payment_types_bp.post("")
@require_auth
def create_payment_type_route():
    """
    Body: {name, fee_type?: percent|fixed|none, fee_value?, applies_to?: profit|cost}

    A fixed fee_value is a currency amount; a percent fee_value is 0..100.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=PaymentType, payload=payload, policy=PAYMENT_TYPE_POLICY, partial=False)
        payment_type = payment_type_service.create_payment_type(owner_id=g.owner_id, patch=patch)
    except ServiceError as e:
        return error_response(e)
    return payment_type.to_dict(), 201


@payment_types_bp.put("/<int:payment_type_id>")
@require_auth
def update_payment_type_route(payment_type_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=PaymentType, payload=payload, policy=PAYMENT_TYPE_POLICY, partial=True)
        payment_type = payment_type_service.update_payment_type(
            owner_id=g.owner_id, payment_type_id=payment_type_id, patch=patch
        )
    except ServiceError as e:
        return error_response(e)
    return payment_type.to_dict(), 200


@payment_types_bp.delete("/<int:payment_type_id>")
@require_auth
def delete_payment_type_route(payment_type_id: int):
    try:
        payment_type_service.delete_payment_type(owner_id=g.owner_id, payment_type_id=payment_type_id)
    except ServiceError as e:
        return error_response(e)
    return {"ok": True}, 200
