# Overview: Route decorators that resolve the bearer token into the owner (tenant) context.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


BEARER_PREFIX = "Bearer "


def bearer_token() -> str | None:
    """Token from `Authorization: Bearer <token>`, or None when absent or malformed."""
    header = request.headers.get("Authorization") or ""
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


def require_auth(view):
    """
    Reject anonymous calls with 401 and scope the request to one owner.

    On success flask.g carries current_user, owner_id (used as the tenant
    filter by every service call) and session_context.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session_context = context
        g.current_user = context.user
        g.owner_id = context.owner_id
        return view(*args, **kwargs)

    return wrapper
