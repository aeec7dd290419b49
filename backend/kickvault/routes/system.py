# backend/kickvault/routes/system.py
"""
System health and version endpoints.

Used by the deployment's liveness check and for debugging which build is
running.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import User, SessionToken
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def _timed(check) -> dict:
    start_time = time.time()
    try:
        details = check()
        status = {"status": "healthy", "details": details}
    except Exception:
        current_app.logger.exception("Health check %s failed", check.__name__)
        status = {"status": "unhealthy", "error": f"{check.__name__} error"}
    status["latency_ms"] = round((time.time() - start_time) * 1000, 2)
    return status


def database() -> dict:
    db.session.execute(text("SELECT 1"))
    return {"users": db.session.query(User).count()}


def sessions() -> dict:
    now = utcnow()
    active = db.session.query(SessionToken).filter(
        SessionToken.is_revoked == False,  # noqa: E712
        SessionToken.expires_at >= now,
    ).count()
    expired = db.session.query(SessionToken).filter(
        SessionToken.is_revoked == False,  # noqa: E712
        SessionToken.expires_at < now,
    ).count()
    return {"active_sessions": active, "expired_pending_cleanup": expired}


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200: database and session store reachable
    - 503: one or more checks failed
    """
    start_time = time.time()
    checks = {"database": _timed(database), "session_service": _timed(sessions)}
    healthy = all(c["status"] == "healthy" for c in checks.values())
    if not healthy:
        db.session.rollback()

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive build information; never secrets or paths."""
    return {
        "api_version": API_VERSION,
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
