"""
Sign-in throttling for owner logins and the consignor portal.

Each attempt becomes a SecurityEvent whose `action` is the identifier
that was tried. When MAX_FAILED_ATTEMPTS failures for one identifier land
inside LOCKOUT_WINDOW, that identifier is refused until LOCKOUT_DURATION
after its latest failure. Owner logins (kind LOGIN) and portal sign-ins
(kind PORTAL_LOGIN) keep separate counters.
"""

from datetime import timedelta
from ..extensions import db
from ..models import SecurityEvent, User
from kickvault.time_utils import utcnow


MAX_FAILED_ATTEMPTS = 10
LOCKOUT_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=15)

LOGIN = "LOGIN"
PORTAL_LOGIN = "PORTAL_LOGIN"

_RESOURCES = {
    LOGIN: "/api/auth/login",
    PORTAL_LOGIN: "/api/consignors/portal",
}


def _failures(identifier: str, kind: str):
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == f"{kind}_FAILED",
        SecurityEvent.action == identifier,
    )


def _record(kind: str, identifier: str, success: bool, user_id=None, reason=None,
            ip_address=None, user_agent=None) -> None:
    outcome = "SUCCESS" if success else "FAILED"
    db.session.add(SecurityEvent(
        user_id=user_id,
        event_type=f"{kind}_{outcome}",
        resource=_RESOURCES.get(kind),
        action=identifier,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    ))
    db.session.commit()


def get_recent_failed_attempts(identifier: str, kind: str = LOGIN) -> int:
    cutoff = utcnow() - LOCKOUT_WINDOW
    return _failures(identifier, kind).filter(SecurityEvent.occurred_at >= cutoff).count()


def is_account_locked(identifier: str, kind: str = LOGIN) -> tuple[bool, int | None]:
    """(True, seconds until unlock) while locked, otherwise (False, None)."""
    if get_recent_failed_attempts(identifier, kind) < MAX_FAILED_ATTEMPTS:
        return False, None

    latest = _failures(identifier, kind).order_by(SecurityEvent.occurred_at.desc()).first()
    if latest is None:
        return False, None

    remaining = latest.occurred_at + LOCKOUT_DURATION - utcnow()
    if remaining.total_seconds() <= 0:
        return False, None
    return True, int(remaining.total_seconds())


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
    kind: str = LOGIN,
) -> int:
    """Store one failure and return the failure count inside the window."""
    user_id = None
    if kind == LOGIN:
        known = db.session.query(User.id).filter(
            db.or_(User.username == identifier, User.email == identifier.lower())
        ).first()
        user_id = known[0] if known else None

    _record(kind, identifier, success=False, user_id=user_id, reason=reason,
            ip_address=ip_address, user_agent=user_agent)
    return get_recent_failed_attempts(identifier, kind)


def record_successful_login(
    user_id: int | None,
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    kind: str = LOGIN,
) -> None:
    # Earlier failures are left to age out of the window.
    _record(kind, identifier, success=True, user_id=user_id,
            ip_address=ip_address, user_agent=user_agent)


def get_lockout_status(identifier: str, kind: str = LOGIN) -> dict:
    is_locked, seconds_remaining = is_account_locked(identifier, kind)
    return {
        "locked": is_locked,
        "failed_attempts": get_recent_failed_attempts(identifier, kind),
        "max_attempts": MAX_FAILED_ATTEMPTS,
        "seconds_until_unlock": seconds_remaining,
        "lockout_window_minutes": int(LOCKOUT_WINDOW.total_seconds() // 60),
        "lockout_duration_minutes": int(LOCKOUT_DURATION.total_seconds() // 60),
    }
