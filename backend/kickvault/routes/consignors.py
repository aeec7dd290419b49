# Overview: Flask API routes for consignors, payouts and the consignor portal.

# backend/kickvault/routes/consignors.py
"""
Consignor routes.

MULTI-TENANT: Management routes are scoped to g.owner_id. The portal
routes are public and authenticate with the consignor id plus the portal
password the owner set; they are throttled like owner logins.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..services import consignor_service
from ..services import auth_service
from ..services import login_throttle_service
from ..services.login_throttle_service import PORTAL_LOGIN
from ..models import Consignor
from ..models.consignment import PAYOUT_METHODS, PAYOUT_STATUSES, CONSIGNOR_STATUSES
from ..errors import ServiceError, ValidationError, error_response
from ..validation import ModelValidationPolicy, validate_payload, enforce_price_cents, to_cents
from ..time_utils import parse_iso_date
from ..decorators import require_auth

CONSIGNOR_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "email", "phone", "commission_rate", "payment_method",
        "payout_method", "fixed_markup_cents", "markup_percentage", "notes", "status",
    },
    required_on_create={"name"},
    choices={
        "payout_method": set(PAYOUT_METHODS),
        "status": set(CONSIGNOR_STATUSES),
    },
)

consignors_bp = Blueprint("consignors", __name__, url_prefix="/api/consignors")
consignment_sales_bp = Blueprint("consignment_sales", __name__, url_prefix="/api/consignment-sales")


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() == "true"


def _split_payload(payload: dict) -> tuple[dict, object]:
    """Separate the portal password from column fields; ... means not supplied."""
    payload = dict(payload)
    portal_password = payload.pop("portal_password", ...)
    return payload, portal_password


@consignors_bp.get("")
@require_auth
def list_consignors_route():
    """
    Query params:
    - status: active | inactive | all (default all)
    - search: matches name, email or phone
    - archived: bool (default false)
    - page, limit: pagination (default 1, 10)
    """
    return consignor_service.list_consignors(
        g.owner_id,
        status=request.args.get("status", "all"),
        search=request.args.get("search"),
        archived=_flag("archived"),
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 10, type=int),
    ), 200


@consignors_bp.get("/stats")
@require_auth
def consignor_stats_route():
    return consignor_service.get_consignor_stats(g.owner_id, archived=_flag("archived")), 200


@consignors_bp.post("")
@require_auth
def create_consignor_route():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    fields, portal_password = _split_payload(payload)
    try:
        patch = validate_payload(model=Consignor, payload=fields, policy=CONSIGNOR_POLICY, partial=False)
        enforce_price_cents(patch, "fixed_markup_cents")
        consignor = consignor_service.create_consignor(
            owner_id=g.owner_id,
            patch=patch,
            portal_password=None if portal_password is ... else portal_password,
        )
    except ServiceError as e:
        return error_response(e)

    return consignor.to_dict(), 201


@consignors_bp.get("/<int:consignor_id>")
@require_auth
def get_consignor_route(consignor_id: int):
    try:
        consignor = consignor_service.get_consignor(g.owner_id, consignor_id)
    except ServiceError as e:
        return error_response(e)
    return consignor.to_dict(), 200


@consignors_bp.put("/<int:consignor_id>")
@require_auth
def update_consignor_route(consignor_id: int):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    fields, portal_password = _split_payload(payload)
    try:
        patch = validate_payload(model=Consignor, payload=fields, policy=CONSIGNOR_POLICY, partial=True)
        enforce_price_cents(patch, "fixed_markup_cents")
        consignor = consignor_service.update_consignor(
            owner_id=g.owner_id,
            consignor_id=consignor_id,
            patch=patch,
            portal_password=portal_password,
        )
    except ServiceError as e:
        return error_response(e)

    return consignor.to_dict(), 200


@consignors_bp.patch("/<int:consignor_id>")
@require_auth
def consignor_action_route(consignor_id: int):
    """Body: {"action": "restore"}"""
    payload = request.get_json(silent=True) or {}
    action = payload.get("action") if isinstance(payload, dict) else None
    if action != "restore":
        return {"error": "Unsupported action"}, 400

    try:
        consignor = consignor_service.restore_consignor(owner_id=g.owner_id, consignor_id=consignor_id)
    except ServiceError as e:
        return error_response(e)
    return consignor.to_dict(), 200


@consignors_bp.delete("/<int:consignor_id>")
@require_auth
def delete_consignor_route(consignor_id: int):
    """Archive by default; ?permanent=true hard-deletes an archived consignor."""
    try:
        if _flag("permanent"):
            result = consignor_service.delete_consignor_permanently(owner_id=g.owner_id, consignor_id=consignor_id)
            return {"ok": True, **result}, 200
        consignor = consignor_service.archive_consignor(owner_id=g.owner_id, consignor_id=consignor_id)
    except ServiceError as e:
        return error_response(e)
    return {"ok": True, "consignor": consignor.to_dict()}, 200


@consignors_bp.get("/<int:consignor_id>/items")
@require_auth
def consignor_items_route(consignor_id: int):
    try:
        return consignor_service.get_consignor_items(g.owner_id, consignor_id), 200
    except ServiceError as e:
        return error_response(e)


@consignors_bp.get("/<int:consignor_id>/payouts")
@require_auth
def consignor_payouts_route(consignor_id: int):
    try:
        consignor_service.get_consignor(g.owner_id, consignor_id)
    except ServiceError as e:
        return error_response(e)
    transactions = consignor_service.list_payout_transactions(g.owner_id, consignor_id)
    return {"items": [t.to_dict() for t in transactions]}, 200


@consignors_bp.post("/<int:consignor_id>/process-payout")
@require_auth
def process_payout_route(consignor_id: int):
    """
    Body: {amount: 150.00, method?: "Bank transfer", date?: "2024-05-01", notes?: "..."}

    The amount is a decimal currency value; whole pending sales are settled
    oldest-first up to that amount.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        if payload.get("amount") is None:
            raise ValidationError("Invalid payout amount")
        amount_cents = to_cents(payload.get("amount"), "amount")

        payout_date = None
        if payload.get("date"):
            try:
                payout_date = parse_iso_date(str(payload["date"]))
            except ValueError:
                raise ValidationError("date must be an ISO-8601 date")

        result = consignor_service.process_payout(
            owner_id=g.owner_id,
            consignor_id=consignor_id,
            amount_cents=amount_cents,
            method=payload.get("method"),
            payout_date=payout_date,
            notes=payload.get("notes"),
        )
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process payout for consignor %s", consignor_id)
        return {"error": "Internal server error"}, 500

    return result, 200


# --- Portal (public) ------------------------------------------------------


def _portal_consignor_id(raw) -> int | None:
    """Canonical consignor id so "7", "07" and " +7" share one lockout counter."""
    if isinstance(raw, bool):
        return None
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@consignors_bp.post("/portal")
def portal_route():
    """
    Consignor self-service view.

    Body: {consignorId, password}. Every credential failure returns the
    same 401 so the caller cannot tell which consignors exist.
    """
    try:
        data = request.get_json(silent=True) or {}
        consignor_id = data.get("consignorId")
        password = data.get("password")
        if consignor_id in (None, "") or not password:
            return jsonify({"error": "consignorId and password required"}), 400

        consignor_id = _portal_consignor_id(consignor_id)
        if consignor_id is None:
            return jsonify({"error": "Invalid credentials"}), 401

        identifier = str(consignor_id)
        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(identifier, PORTAL_LOGIN)
        if is_locked:
            return jsonify({
                "error": "Too many failed attempts. Try again later.",
                "locked": True,
                "retry_after_seconds": seconds_remaining,
            }), 429

        consignor = auth_service.authenticate_consignor(consignor_id, password)
        if consignor is None:
            login_throttle_service.record_failed_attempt(
                identifier=identifier,
                ip_address=ip_address,
                user_agent=user_agent,
                reason="Invalid portal credentials",
                kind=PORTAL_LOGIN,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        login_throttle_service.record_successful_login(
            user_id=None,
            identifier=identifier,
            ip_address=ip_address,
            user_agent=user_agent,
            kind=PORTAL_LOGIN,
        )
        return jsonify(consignor_service.portal_snapshot(consignor)), 200

    except Exception:
        current_app.logger.exception("Failed to load consignor portal")
        return jsonify({"error": "Internal server error"}), 500


# --- Consignment sales ----------------------------------------------------


@consignment_sales_bp.get("")
@require_auth
def list_consignment_sales_route():
    """
    Query params:
    - consignor_id: int (optional)
    - payout_status: pending | paid | disputed | cancelled (optional)
    """
    payout_status = request.args.get("payout_status")
    if payout_status and payout_status not in PAYOUT_STATUSES:
        return {"error": f"payout_status must be one of: {', '.join(PAYOUT_STATUSES)}"}, 400

    sales = consignor_service.list_consignment_sales(
        g.owner_id,
        consignor_id=request.args.get("consignor_id", type=int),
        payout_status=payout_status,
    )
    return {"items": [s.to_dict(include_variant=True) for s in sales], "count": len(sales)}, 200
