# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/kickvault/routes/sales.py
"""
Sales routes: checkout, history, stats and refunds.

Responses use the {success, data} envelope. Checkout prices are decimal
currency amounts; everything returned is integer cents.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..services import sales_service
from ..errors import ServiceError, ValidationError, error_response
from ..time_utils import parse_iso_date
from ..decorators import require_auth

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _fail(e: ServiceError):
    body, status = error_response(e, envelope=True)
    return jsonify(body), status


def _internal_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"success": False, "error": "Internal server error"}), 500


def _date_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")


@sales_bp.post("")
@require_auth
def record_sale_route():
    """
    Record a checkout.

    Body:
        items: [{variantId, soldPrice}]
        discount?: decimal
        saleDate?: ISO date
        paymentTypeId?: int
        customerId? | customerName? + customerPhone?
        profitDistribution?: [{avatarId, percentage}]  (must total 100)
    """
    try:
        sale = sales_service.record_sale(owner_id=g.owner_id, payload=request.get_json(silent=True))
    except ServiceError as e:
        return _fail(e)
    except Exception:
        return _internal_error("Failed to record sale")

    return jsonify({"success": True, "data": sale.to_dict(include_lines=True)}), 201


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query params:
    - start_date, end_date: ISO dates (inclusive)
    - customer_id: int
    - status: completed | refunded
    - page, per_page: pagination (default 1, 20; max 100)
    """
    try:
        data = sales_service.list_sales(
            g.owner_id,
            start_date=_date_arg("start_date"),
            end_date=_date_arg("end_date"),
            customer_id=request.args.get("customer_id", type=int),
            status=request.args.get("status"),
            page=request.args.get("page", 1, type=int),
            per_page=request.args.get("per_page", 20, type=int),
        )
    except ServiceError as e:
        return _fail(e)
    except Exception:
        return _internal_error("Failed to list sales")

    return jsonify({"success": True, "data": data}), 200


@sales_bp.get("/stats")
@require_auth
def sales_stats_route():
    try:
        data = sales_service.get_sales_stats(
            g.owner_id,
            start_date=_date_arg("start_date"),
            end_date=_date_arg("end_date"),
        )
    except ServiceError as e:
        return _fail(e)
    except Exception:
        return _internal_error("Failed to compute sales stats")

    return jsonify({"success": True, "data": data}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.owner_id, sale_id)
    except ServiceError as e:
        return _fail(e)
    return jsonify({"success": True, "data": sale.to_dict(include_lines=True)}), 200


@sales_bp.post("/<int:sale_id>/refund")
@require_auth
def refund_sale_route(sale_id: int):
    """Refund a whole sale; units return to Available."""
    try:
        sale = sales_service.refund_sale(owner_id=g.owner_id, sale_id=sale_id)
    except ServiceError as e:
        return _fail(e)
    except Exception:
        return _internal_error("Failed to refund sale")

    return jsonify({"success": True, "data": sale.to_dict(include_lines=True)}), 200
