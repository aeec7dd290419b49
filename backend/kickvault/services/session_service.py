# Overview: Bearer session lifecycle for owner accounts (issue, check, revoke, purge).

"""
Owner Sessions

A login hands the client an opaque bearer token. Only its SHA-256 digest
is persisted in session_tokens, so a leaked database cannot be replayed.

The owner behind a session is the tenant: SessionContext.owner_id is what
require_auth places on flask.g for every inventory, sales and consignor
query.

Lifetimes come from app config:
- SESSION_LIFETIME_HOURS: hard expiry measured from login (default 24)
- SESSION_IDLE_MINUTES: inactivity window; an idle session is revoked (default 120)
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from kickvault.time_utils import utcnow


TOKEN_BYTES = 32
USER_AGENT_MAX = 512


@dataclass
class SessionContext:
    user: User
    session: SessionToken

    @property
    def owner_id(self) -> int:
        return self.user.id


def _lifetime() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_LIFETIME_HOURS", 24))


def _idle_window() -> timedelta:
    return timedelta(minutes=current_app.config.get("SESSION_IDLE_MINUTES", 120))


def generate_token() -> str:
    """64 hex chars; handed to the client once and never stored."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    # Tokens carry full random entropy, a plain digest is enough here.
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .filter(SessionToken.is_revoked.is_(False))
        .first()
    )


def _mark_revoked(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for an active owner.

    Returns (session row, plaintext token). Raises ValueError for an
    unknown or deactivated owner.
    """
    owner = db.session.get(User, user_id)
    if owner is None:
        raise ValueError("User not found")
    if not owner.is_active:
        raise ValueError("User account is not active")

    token = generate_token()
    issued_at = utcnow()
    session = SessionToken(
        user_id=owner.id,
        token_hash=hash_token(token),
        created_at=issued_at,
        last_used_at=issued_at,
        expires_at=issued_at + _lifetime(),
        user_agent=(user_agent or "")[:USER_AGENT_MAX] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    current_app.logger.info("Session opened for owner %s", owner.id)
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its owner, or None.

    An idle session, or one whose owner was deactivated, is revoked on the
    spot so it cannot come back. A live session has last_used_at bumped.
    """
    session = _live_session(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_window():
        _mark_revoked(session, "Idle timeout")
        db.session.commit()
        return None

    owner = session.user
    if owner is None or not owner.is_active:
        _mark_revoked(session, "User account deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=owner, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when the token is unknown or already revoked."""
    session = _live_session(token)
    if session is None:
        return False

    _mark_revoked(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    open_sessions = (
        db.session.query(SessionToken)
        .filter_by(user_id=user_id, is_revoked=False)
        .all()
    )
    for session in open_sessions:
        _mark_revoked(session, reason)
    db.session.commit()

    if open_sessions:
        current_app.logger.info("Revoked %d sessions for owner %s: %s", len(open_sessions), user_id, reason)
    return len(open_sessions)


def cleanup_expired_sessions(older_than: timedelta = timedelta(days=30)) -> int:
    """Purge expired or revoked sessions issued before the retention window."""
    now = utcnow()
    dead = db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True))

    deleted = (
        db.session.query(SessionToken)
        .filter(dead, SessionToken.created_at < now - older_than)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
