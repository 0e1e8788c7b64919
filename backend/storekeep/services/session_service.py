# Overview: Service-layer operations for session; the credential layer that turns bearer tokens into principals.

"""
Session Token Management Service

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

MULTI-TENANT: Sessions do NOT cache role or tenant. verify() rebuilds the
Principal from the user row on every request, so a role change or
deactivation takes effect immediately.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout, deactivation or deletion
- Tracks client IP and user agent for security monitoring
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..access import Principal
from ..errors import AuthError, NotFoundError
from ..models import SessionToken, User
from storekeep.time_utils import utcnow


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=2)        # Activity timeout
SESSION_RETENTION = timedelta(days=30)           # Keep dead sessions this long


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy (unlike passwords), so a fast hash is
    sufficient.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.

    Raises NotFoundError if the user does not exist (or is deleted) and
    AuthError if the account is inactive.
    """
    user = db.session.get(User, user_id)
    if user is None or user.is_deleted:
        raise NotFoundError("User not found")
    if not user.is_active:
        raise AuthError("Account is disabled")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str, now) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason


def verify(token: str | None) -> Principal:
    """
    Validate a bearer token and return the acting Principal.

    Raises AuthError if:
    - Token is missing, unknown, expired, idle or revoked
    - User account is deactivated or deleted

    Updates last_used_at on success (activity tracking). Idle sessions and
    sessions of disabled users are revoked as a side effect.
    """
    if not token:
        raise AuthError("Authentication required")

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if session is None:
        raise AuthError("Invalid or expired token")

    # Check absolute timeout
    if session.expires_at < now:
        raise AuthError("Invalid or expired token")

    # Check idle timeout
    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout", now)
        db.session.commit()
        raise AuthError("Session expired due to inactivity")

    user = session.user
    if user is None or user.is_deleted or not user.is_active:
        _revoke(session, "User account deactivated", now)
        db.session.commit()
        raise AuthError("Account is disabled")

    session.last_used_at = now
    db.session.commit()

    return Principal.for_user(user)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason, utcnow())
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions", *, commit: bool = True) -> int:
    """
    Revoke all active sessions for a user.

    Returns count of sessions revoked. Pass commit=False when the caller
    owns the surrounding transaction (user deactivation, deletion).
    """
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        _revoke(session, reason, now)

    if commit:
        db.session.commit()
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """
    Delete expired and revoked sessions older than SESSION_RETENTION.

    Returns count of sessions deleted. Run periodically (flask maintenance
    cleanup-sessions).
    """
    now = utcnow()
    cutoff = now - SESSION_RETENTION

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
