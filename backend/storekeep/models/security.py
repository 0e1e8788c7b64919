from __future__ import annotations

from ..extensions import db
from storekeep.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Security event audit log with tenant context.

    MULTI-TENANT: Events carry owner_id (the tenant of the acting user) so
    they can be filtered per tenant. owner_id is NULL for pre-auth events.

    WHY: Track denied accesses and failed logins.
    Critical for detecting cross-tenant probing and compliance.

    IMMUTABLE: Never update or delete (except retention cleanup).
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_type", "user_id", "event_type"),
        db.Index("ix_security_events_owner_occurred", "owner_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # MULTI-TENANT: Tenant context for isolation
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)  # Nullable for anonymous

    # Event classification
    event_type = db.Column(db.String(64), nullable=False, index=True)  # ACCESS_DENIED, CROSS_TENANT_ACCESS_DENIED, LOGIN_FAILED
    resource = db.Column(db.String(128), nullable=True)  # e.g., "/api/transactions/4/approve"
    action = db.Column(db.String(64), nullable=True)     # e.g., "APPROVE_TRANSFER"

    # Event details
    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    # Client context
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "occurred_at": to_utc_z(self.occurred_at),
        }
