# Overview: Flask API routes for owner signup, login, logout and the current-owner profile.

# backend/kickvault/routes/auth.py
"""
Owner authentication routes.

Login failures are recorded per identifier; after
login_throttle_service.MAX_FAILED_ATTEMPTS inside the lockout window the
identifier gets 429 until the window passes, even with the right password.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import login_throttle_service as throttle
from ..services.auth_service import PasswordValidationError
from ..services.plan_service import get_plan_summary
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

# Warn once the owner is this close to a lockout
LOCKOUT_WARNING_THRESHOLD = 3


def _request_origin() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.remote_addr,
    }


def _signed_in(user, message: str, status: int):
    session, token = session_service.create_session(user_id=user.id, **_request_origin())
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": message,
    }), status


def _locked(error: str, seconds_remaining: int | None = None):
    window_minutes = int(throttle.LOCKOUT_DURATION.total_seconds() // 60)
    body = {
        "error": error,
        "locked": True,
        "retry_after_minutes": (seconds_remaining // 60) + 1 if seconds_remaining else window_minutes,
    }
    if seconds_remaining is not None:
        body["retry_after_seconds"] = seconds_remaining
    return jsonify(body), 429


@auth_bp.post("/signup")
def signup_route():
    """Create an owner on the free plan (Main avatar, Cash payment type) and sign them in."""
    data = request.get_json(silent=True) or {}
    username, email, password = data.get("username"), data.get("email"), data.get("password")
    if not (username and email and password):
        return jsonify({"error": "username, email and password required"}), 400

    try:
        user = auth_service.create_user(username, email, password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 409 if "exists" in str(e) else 400

    try:
        return _signed_in(user, "Signup successful", 201)
    except Exception:
        current_app.logger.exception("Failed to open session after signup for %s", user.username)
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """Sign in by username or email; the returned token goes in Authorization: Bearer."""
    data = request.get_json(silent=True) or {}
    identifier = data.get("username") or data.get("email") or data.get("identifier")
    password = data.get("password")
    if not (identifier and password):
        return jsonify({"error": "username/email and password required"}), 400

    is_locked, seconds_remaining = throttle.is_account_locked(identifier)
    if is_locked:
        return _locked("Account temporarily locked due to too many failed login attempts", seconds_remaining)

    origin = _request_origin()
    user = auth_service.authenticate(identifier, password)
    if user is None:
        failures = throttle.record_failed_attempt(identifier=identifier, reason="Invalid credentials", **origin)
        attempts_left = throttle.MAX_FAILED_ATTEMPTS - failures
        if attempts_left <= 0:
            current_app.logger.warning("Login locked for identifier %r", identifier)
            return _locked("Account locked due to too many failed login attempts")

        body = {"error": "Invalid credentials"}
        if attempts_left <= LOCKOUT_WARNING_THRESHOLD:
            body["warning"] = f"{attempts_left} attempts remaining before account lockout"
        return jsonify(body), 401

    throttle.record_successful_login(user_id=user.id, identifier=identifier, **origin)

    try:
        return _signed_in(user, "Login successful", 200)
    except Exception:
        current_app.logger.exception("Failed to open session for %s", user.username)
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/lockout-status/<identifier>")
def lockout_status_route(identifier: str):
    return jsonify(throttle.get_lockout_status(identifier))


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Signed-in owner plus plan limits and current variant usage."""
    owner = g.current_user
    return jsonify({"user": owner.to_dict(), "plan": get_plan_summary(owner)}), 200
