# Overview: Flask API routes for customer pre-orders and their conversion into inventory.

from flask import Blueprint, request, jsonify, g

from ..services import preorder_service
from ..errors import ServiceError, error_response
from ..decorators import require_auth

preorders_bp = Blueprint("preorders", __name__, url_prefix="/api/preorders")


def _fail(e: ServiceError):
    body, status = error_response(e, envelope=True)
    return jsonify(body), status


@preorders_bp.get("")
@require_auth
def list_preorders_route():
    """
    Query params:
    - status: pending | confirmed | completed | canceled | voided
    - available: true lists only open (pending or confirmed) pre-orders
    """
    try:
        preorders = preorder_service.list_preorders(
            g.owner_id,
            status=request.args.get("status"),
            available=request.args.get("available", "false").lower() == "true",
        )
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": [p.to_dict() for p in preorders]}), 200


@preorders_bp.post("")
@require_auth
def create_preorder_route():
    try:
        preorder = preorder_service.create_preorder(
            owner_id=g.owner_id, payload=request.get_json(silent=True)
        )
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": preorder.to_dict()}), 201


@preorders_bp.get("/<int:preorder_id>")
@require_auth
def get_preorder_route(preorder_id: int):
    try:
        preorder = preorder_service.get_preorder(g.owner_id, preorder_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": preorder.to_dict()}), 200


@preorders_bp.patch("/<int:preorder_id>")
@require_auth
def update_preorder_route(preorder_id: int):
    try:
        preorder = preorder_service.update_preorder(
            owner_id=g.owner_id, preorder_id=preorder_id, payload=request.get_json(silent=True)
        )
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": preorder.to_dict()}), 200


@preorders_bp.post("/<int:preorder_id>/convert")
@require_auth
def convert_preorder_route(preorder_id: int):
    """Body: {status?} unit status for the new variant (default Available)."""
    payload = request.get_json(silent=True) or {}
    try:
        preorder = preorder_service.convert_preorder(
            owner=g.current_user,
            preorder_id=preorder_id,
            status=payload.get("status") or "Available",
        )
    except ServiceError as e:
        return _fail(e)
    variant = preorder.variant
    return jsonify({
        "success": True,
        "data": {
            "preorder": preorder.to_dict(),
            "variantId": variant.id,
            "variantSku": variant.variant_sku,
            "serialNumber": variant.serial_number,
        },
    }), 201
