# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

# backend/kickvault/routes/inventory.py
"""
Inventory routes.

Responses use the {success, data} / {success: false, error, details}
envelope. Payload keys are camelCase and prices are decimal currency
amounts (converted to cents server-side).
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..errors import ServiceError, error_response
from ..services import inventory_service
from ..decorators import require_auth

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("")
@require_auth
def add_inventory_route():
    """
    Add units of a product.

    Body:
        productForm: {sku, name, brand?, category?, sizeCategory?, image?,
                      originalPrice?, salePrice?}
        variantsToAdd: [{size, quantity?=1, sizeLabel?, location?, status?,
                         condition?, dateAdded?, costPrice?, salePrice?,
                         ownerType?, consignorId?}]

    Status: 201 created, 400 validation, 403 quota, 409 serial allocation.
    """
    payload = request.get_json(silent=True)

    try:
        result = inventory_service.add_inventory(owner=g.current_user, payload=payload)
    except ServiceError as e:
        body, status = error_response(e, envelope=True)
        return jsonify(body), status
    except Exception:
        current_app.logger.exception("Failed to add inventory")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "data": result}), 201


@inventory_bp.get("/summary")
@require_auth
def inventory_summary_route():
    """Count and cost/sale valuation of Available units."""
    try:
        return jsonify({"success": True, "data": inventory_service.get_inventory_summary(g.owner_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to compute inventory summary")
        return jsonify({"success": False, "error": "Internal server error"}), 500
