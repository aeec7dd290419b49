# Overview: Flask API routes for subscription plan limits.

from flask import Blueprint, jsonify, current_app, g

from ..services.plan_service import get_plan_summary, get_variant_quota
from ..decorators import require_auth

plans_bp = Blueprint("plans", __name__, url_prefix="/api")


@plans_bp.get("/user-plan")
@require_auth
def user_plan_route():
    return jsonify(get_plan_summary(g.current_user)), 200


@plans_bp.get("/inventory/variant-limits")
@require_auth
def variant_limits_route():
    """Available-variant usage against the plan ceiling."""
    try:
        return jsonify({"success": True, "data": get_variant_quota(g.current_user)}), 200
    except Exception:
        current_app.logger.exception("Failed to compute variant limits")
        return jsonify({"success": False, "error": "Internal server error"}), 500
