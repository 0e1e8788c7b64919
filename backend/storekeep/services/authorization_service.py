# Overview: Service-layer operations for authorization; decides whether a principal may act on a target.

"""
Authorization Engine with Multi-Tenant Support

WHY: Every mutating operation is guarded by one decision function so
tenant isolation and role thresholds are enforced the same way everywhere.

ALGORITHM (authorize):
1. Tenant check: principal's tenant must equal the target's tenant,
   otherwise DENY("cross-tenant"). Cross-tenant access is never permitted.
2. Self-scope: VIEW_USERS / UPDATE_USER on one's own User record is
   allowed for every role.
3. Minimum role from the action table, otherwise DENY("insufficient-role").
4. Acting on another user (update/delete) requires strictly outranking them.

DESIGN PRINCIPLES:
- Fail closed: unknown actions are programming errors, not grants
- Side-effect free: authorize() never writes; denials are audited by the
  HTTP error handler after the request's session has been rolled back
- Deterministic: the same principal, action and target always yield the
  same Decision
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..access import (
    Principal,
    Role,
    SELF_SCOPED_ACTIONS,
    OUTRANK_REQUIRED_ACTIONS,
    minimum_role,
)
from ..errors import (
    AuthorizationError,
    REASON_CROSS_TENANT,
    REASON_INSUFFICIENT_ROLE,
)
from ..models import User, SecurityEvent
from storekeep.time_utils import utcnow
from .ownership_service import resolve_tenant, scope_of


@dataclass(frozen=True)
class Decision:
    """Result of an authorization check: ALLOW, or DENY with a reason code."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


def authorize(principal: Principal, action: str, target) -> Decision:
    """
    Decide whether principal may perform action on target.

    target is any model implementing the ownership chain. For tenant-level
    actions (create a store, list users) pass the tenant's OWNER user.

    Raises (never returns DENY for these):
    - ValueError: unknown action code
    - NotFoundError: target's ownership chain has a missing/soft-deleted link
    - IntegrityError: principal or chain violates a tenancy invariant
    """
    required = minimum_role(action)

    if resolve_tenant(principal) != scope_of(target):
        return Decision.deny(REASON_CROSS_TENANT)

    is_user_target = isinstance(target, User)
    if is_user_target and action in SELF_SCOPED_ACTIONS and target.id == principal.user_id:
        return Decision.allow()

    if not principal.role.at_least(required):
        return Decision.deny(REASON_INSUFFICIENT_ROLE)

    if is_user_target and action in OUTRANK_REQUIRED_ACTIONS:
        if not principal.role.outranks(Role.parse(target.role)):
            return Decision.deny(REASON_INSUFFICIENT_ROLE)

    return Decision.allow()


def require(principal: Principal, action: str, target) -> None:
    """
    Guard form of authorize().

    Raises AuthorizationError carrying the denial reason.
    """
    decision = authorize(principal, action, target)
    if decision.allowed:
        return
    if decision.reason == REASON_CROSS_TENANT:
        message = "Access denied: resource belongs to another tenant"
    else:
        message = f"Access denied: {action} requires role {minimum_role(action).value} or higher"
    raise AuthorizationError(message, reason=decision.reason, action=action)


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    owner_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    MULTI-TENANT: Includes owner_id so events can be filtered per tenant.

    Commits immediately. Callers must roll back any failed work first.

    event_type examples:
    - ACCESS_DENIED
    - CROSS_TENANT_ACCESS_DENIED
    - AUTHENTICATION_FAILED
    - LOGIN_FAILED
    - LOGOUT
    """
    event = SecurityEvent(
        user_id=user_id,
        owner_id=owner_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event
