# Overview: Service-layer operations for maintenance; retention cleanup for audit and session tables.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent
from storekeep.time_utils import utcnow
from .session_service import cleanup_expired_sessions


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    if retention_days < 1:
        raise ValueError("retention_days must be >= 1")
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_sessions() -> int:
    """Delete long-dead session tokens."""
    return cleanup_expired_sessions()
