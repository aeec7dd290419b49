from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Append-only record of owner logins and consignor portal sign-ins.

    Failed rows double as the throttle counter: the identifier that was
    tried (username, email or consignor id) sits in `action`, and
    login_throttle_service counts recent failures by event_type + action.
    Rows are only ever removed by `flask maintenance cleanup-security-events`.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_type_action", "event_type", "action"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    # Null for unknown identifiers and portal attempts
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)  # e.g. PORTAL_LOGIN_FAILED
    resource = db.Column(db.String(128), nullable=True)
    action = db.Column(db.String(255), nullable=True)
    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User", backref=db.backref("security_events", lazy=True))

    def to_dict(self) -> dict:
        payload = {
            column: getattr(self, column)
            for column in ("id", "user_id", "event_type", "resource", "action", "success", "reason", "ip_address")
        }
        payload["occurred_at"] = to_utc_z(self.occurred_at)
        return payload
