# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/kickvault/routes/products.py
"""
Product management routes.

MULTI-TENANT: All product operations are scoped to the caller
(g.owner_id, set by @require_auth). Products of other owners are 404.

Products are created by POST /api/inventory; these routes list, edit,
archive and restore them.
"""
from flask import Blueprint, request, g

from ..services import products_service, inventory_service
from ..models import Product
from ..errors import ServiceError, error_response
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_price_cents,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "brand", "category", "size_category", "image_url",
        "cost_price_cents", "sale_price_cents",
    },
    required_on_create={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List the caller's products with available unit counts.

    Query params:
    - search: str (optional) - matches name, brand or sku
    - archived: bool (optional) - list archived products instead
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return products_service.list_products(
        g.owner_id,
        search=request.args.get("search"),
        archived=request.args.get("archived", "false").lower() == "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(g.owner_id, product_id)
    except ServiceError as e:
        return error_response(e)
    return product.to_dict(), 200


@products_bp.get("/<int:product_id>/variants")
@require_auth
def list_product_variants_route(product_id: int):
    try:
        products_service.get_product(g.owner_id, product_id)
    except ServiceError as e:
        return error_response(e)

    include_archived = request.args.get("include_archived", "false").lower() == "true"
    variants = inventory_service.list_product_variants(
        g.owner_id, product_id, include_archived=include_archived
    )
    return {"items": [v.to_dict() for v in variants], "count": len(variants)}, 200


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Update product master data. Prices are integer cents."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_price_cents(patch, "cost_price_cents", "sale_price_cents")
        updated = products_service.update_product(owner_id=g.owner_id, product_id=product_id, patch=patch)
    except ServiceError as e:
        return error_response(e)

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def archive_product_route(product_id: int):
    """Archive a product and its Available units."""
    try:
        result = products_service.archive_product(owner_id=g.owner_id, product_id=product_id)
    except ServiceError as e:
        return error_response(e)
    return {"ok": True, **result}, 200


@products_bp.post("/<int:product_id>/restore")
@require_auth
def restore_product_route(product_id: int):
    try:
        product = products_service.restore_product(owner_id=g.owner_id, product_id=product_id)
    except ServiceError as e:
        return error_response(e)
    return product.to_dict(), 200
