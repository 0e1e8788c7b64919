# Overview: Error taxonomy shared by the authorization engine, workflows and routes.

"""
Domain errors.

Every failure raised by the core carries a machine-readable ``code`` and,
where clients need to tell failures apart (tenant vs role denial, finished
vs unapproved transfer), a ``reason``. The HTTP layer maps ``status_code``
onto the response; services never catch these.
"""

from __future__ import annotations


# Reason codes for AuthorizationError
REASON_CROSS_TENANT = "cross-tenant"
REASON_INSUFFICIENT_ROLE = "insufficient-role"

# Reason codes for InvalidStateError
REASON_ALREADY_FINISHED = "already-finished"
REASON_ALREADY_APPROVED = "already-approved"
REASON_NOT_APPROVED = "not-approved"
REASON_NOT_TRANSFER = "not-transfer"
REASON_ALREADY_RESOLVED = "already-resolved"
REASON_CONCURRENT_UPDATE = "concurrent-update"


class DomainError(Exception):
    """Base class for all typed failures surfaced to callers."""

    status_code = 500
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, *, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.reason:
            body["reason"] = self.reason
        return body


class AuthError(DomainError):
    """Credential missing, invalid, expired or revoked (401)."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"


class AuthorizationError(DomainError):
    """Role or tenant check failed (403)."""

    status_code = 403
    code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str, *, reason: str = REASON_INSUFFICIENT_ROLE, action: str | None = None):
        super().__init__(message, reason=reason)
        self.action = action


class NotFoundError(DomainError):
    """Entity or ownership-chain link missing or soft-deleted (404)."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(DomainError, ValueError):
    """400-level input problem, including invalid transition input."""

    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(ValidationError):
    """409-level uniqueness conflict (duplicate username, store code, SKU)."""

    status_code = 409
    code = "CONFLICT"


class InvalidStateError(DomainError):
    """Transition is not legal from the entity's current state (409)."""

    status_code = 409
    code = "INVALID_STATE"


class IntegrityError(DomainError):
    """
    A persisted invariant is violated (e.g. non-OWNER user without owner_id).

    Treated as unexpected: logged with traceback and surfaced as a 500.
    Not to be confused with sqlalchemy.exc.IntegrityError.
    """

    status_code = 500
    code = "INTEGRITY_ERROR"
