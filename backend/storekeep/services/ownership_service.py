# Overview: Service-layer operations for ownership; resolves which OWNER a principal or entity belongs to.

"""
Ownership Scope Resolver

WHY: Every authorization decision compares two tenants: the principal's
and the target entity's. This module is the single place that knows how
to compute either.

MULTI-TENANT: A tenant is identified by its OWNER's user id.
- Principals resolve directly from their role and owner_id.
- Entities resolve by walking owner_chain_parents() up to a row whose
  tenant_root_id() is set (an OWNER user).

FAILURE MODES:
- Missing or soft-deleted link in the chain -> NotFoundError
- Non-OWNER principal or user without owner_id -> IntegrityError
- Links that disagree on the tenant (e.g. a transfer between stores of
  different owners that slipped past validation) -> IntegrityError
"""

from __future__ import annotations

from ..extensions import db
from ..access import Principal, Role
from ..models import User
from ..errors import IntegrityError, NotFoundError
from .concurrency import lock_for_update, run_with_retry


# Deep enough for the longest chain (ProductCheck -> Product -> Store -> User -> User)
MAX_CHAIN_DEPTH = 8


def resolve_tenant(principal: Principal) -> int:
    """
    Return the owner id of the principal's tenant.

    OWNER -> own user id; anyone else -> owner_id.
    """
    if principal.role is Role.OWNER:
        return principal.user_id
    if principal.owner_id is None:
        raise IntegrityError(
            f"User {principal.user_id} has role {principal.role.value} but no owner"
        )
    return principal.owner_id


def _walk(entity, depth: int) -> int:
    if entity is None:
        raise NotFoundError("Ownership chain is broken: linked record not found")
    if getattr(entity, "deleted_at", None) is not None:
        raise NotFoundError(f"{entity.chain_label} not found")
    if depth > MAX_CHAIN_DEPTH:
        raise IntegrityError(f"Ownership chain too deep at {entity.chain_label}")

    root = entity.tenant_root_id()
    if root is not None:
        return root

    tenants = {_walk(parent, depth + 1) for parent in entity.owner_chain_parents()}
    if not tenants:
        raise IntegrityError(f"{entity.chain_label} has no ownership chain")
    if len(tenants) > 1:
        raise IntegrityError(f"{entity.chain_label} spans several tenants")
    return tenants.pop()


def scope_of(entity) -> int:
    """
    Return the owner id of the tenant an entity belongs to.

    The walk only reads; transient lock errors are retried.
    """
    return run_with_retry(lambda: _walk(entity, 0))


def same_tenant(a: Principal, b: Principal) -> bool:
    """Two principals are same-tenant iff their tenants resolve equal."""
    return resolve_tenant(a) == resolve_tenant(b)


def tenant_root(principal: Principal):
    """Load the OWNER user heading the principal's tenant (target for tenant-level actions)."""
    owner_id = resolve_tenant(principal)
    owner = db.session.get(User, owner_id)
    if owner is None or owner.is_deleted:
        raise NotFoundError("Tenant owner not found")
    if owner.role != Role.OWNER.value:
        raise IntegrityError(f"Tenant root {owner_id} is not an OWNER")
    return owner


def load_live(model, entity_id, *, lock: bool = False):
    """
    Fetch a live (not soft-deleted) row by id or raise NotFoundError.

    lock=True re-reads the row under SELECT ... FOR UPDATE for transitions.
    """
    query = db.session.query(model).filter(model.id == entity_id)
    if hasattr(model, "deleted_at"):
        query = query.filter(model.deleted_at.is_(None))
    if lock:
        query = lock_for_update(query).populate_existing()
    entity = query.first()
    if entity is None:
        raise NotFoundError(f"{model.__name__} {entity_id} not found")
    return entity
