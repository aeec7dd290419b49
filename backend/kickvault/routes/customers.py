# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

# backend/kickvault/routes/customers.py
"""
Customer routes.

MULTI-TENANT: Customers are scoped to g.owner_id. DELETE archives the
customer so past sales keep their link.
"""
from flask import Blueprint, request, g

from ..services import customer_service
from ..models import Customer
from ..models.customers import CUSTOMER_TYPES
from ..errors import ServiceError, error_response
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "email", "phone", "address", "city", "state", "zip_code",
        "country", "customer_type", "notes",
    },
    required_on_create={"name"},
    choices={"customer_type": set(CUSTOMER_TYPES)},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """
    Query params:
    - search: matches name, email or phone
    - customer_type: regular | vip | wholesale
    - archived: bool (default false)
    - page, per_page: pagination (default 1, 20; max 100)
    """
    return customer_service.list_customers(
        g.owner_id,
        search=request.args.get("search"),
        customer_type=request.args.get("customer_type"),
        archived=request.args.get("archived", "false").lower() == "true",
        page=request.args.get("page", 1, type=int),
        per_page=request.args.get("per_page", 20, type=int),
    ), 200


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        customer = customer_service.create_customer(owner_id=g.owner_id, patch=patch)
    except ServiceError as e:
        return error_response(e)
    return customer.to_dict(), 201


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        return customer_service.customer_detail(g.owner_id, customer_id), 200
    except ServiceError as e:
        return error_response(e)


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        customer = customer_service.update_customer(owner_id=g.owner_id, customer_id=customer_id, patch=patch)
    except ServiceError as e:
        return error_response(e)
    return customer.to_dict(), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
def archive_customer_route(customer_id: int):
    try:
        customer_service.archive_customer(owner_id=g.owner_id, customer_id=customer_id)
    except ServiceError as e:
        return error_response(e)
    return {"ok": True}, 200


@customers_bp.get("/<int:customer_id>/purchase-history")
@require_auth
def purchase_history_route(customer_id: int):
    try:
        return customer_service.get_purchase_history(g.owner_id, customer_id), 200
    except ServiceError as e:
        return error_response(e)
