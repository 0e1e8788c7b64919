# Overview: Service-layer operations for users; staff account management inside a tenant.

"""
User Management Service

MULTI-TENANT: Every account created here belongs to the acting principal's
tenant (owner_id = tenant OWNER). OWNER accounts only come from
self-registration (auth_service.register_owner).

ROLE HIERARCHY RULES:
- A user may only create or assign roles strictly below their own
- Updating or deleting another user requires strictly outranking them
- Anyone may view and edit their own record, but never their own role
  or activation flag
- Nobody can delete themselves

Services flush but never commit; the route owns the transaction.
"""

from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal, Role, assignable_roles
from ..errors import AuthorizationError, ValidationError
from ..models import User
from ..pagination import paginate
from .auth_service import ensure_username_available, hash_password, normalize_username
from .authorization_service import require
from .ownership_service import load_live, resolve_tenant, tenant_root
from .session_service import revoke_all_user_sessions


def _check_assignable(principal: Principal, role_value, action: str) -> Role:
    try:
        role = Role.parse(role_value)
    except ValueError as e:
        raise ValidationError(str(e)) from None
    if role not in assignable_roles(principal.role):
        raise AuthorizationError(
            f"Role {principal.role.value} cannot assign role {role.value}",
            action=action,
        )
    return role


def list_users(
    principal: Principal,
    *,
    role: str | None = None,
    include_inactive: bool = True,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """List the tenant's live accounts, the OWNER included."""
    require(principal, Action.VIEW_USERS, tenant_root(principal))
    tenant = resolve_tenant(principal)

    query = User.live().filter(db.or_(User.id == tenant, User.owner_id == tenant))
    if role:
        try:
            query = query.filter(User.role == Role.parse(role).value)
        except ValueError as e:
            raise ValidationError(str(e)) from None
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))

    return paginate(query.order_by(User.id.asc()), page=page, per_page=per_page)


def get_user(principal: Principal, user_id: int) -> User:
    user = load_live(User, user_id)
    require(principal, Action.VIEW_USERS, user)
    return user


def create_user(principal: Principal, *, patch: dict, password: str) -> User:
    """
    Create a subordinate account in the principal's tenant.

    Raises:
        AuthorizationError: below ADMIN, or role not strictly below principal's
        ValidationError: bad username/role or weak password
        ConflictError: username taken
    """
    require(principal, Action.CREATE_USER, tenant_root(principal))

    role = _check_assignable(principal, patch.get("role"), Action.CREATE_USER)
    username = normalize_username(patch.get("username"))
    ensure_username_available(username)

    user = User(
        username=username,
        name=patch["name"],
        role=role.value,
        owner_id=resolve_tenant(principal),
        password_hash=hash_password(password),
        is_active=patch.get("is_active", True),
    )
    db.session.add(user)
    db.session.flush()
    return user


def update_user(principal: Principal, user_id: int, *, patch: dict, password: str | None = None) -> User:
    """
    Update name, username, role, activation or password.

    Deactivation revokes the user's sessions in the same transaction.
    """
    user = load_live(User, user_id)
    require(principal, Action.UPDATE_USER, user)

    is_self = user.id == principal.user_id
    if is_self and ("role" in patch or "is_active" in patch):
        raise ValidationError("You cannot change your own role or activation")

    if "role" in patch:
        user.role = _check_assignable(principal, patch["role"], Action.UPDATE_USER).value

    if "username" in patch:
        username = normalize_username(patch["username"])
        if username != user.username:
            ensure_username_available(username)
            user.username = username

    if "name" in patch:
        user.name = patch["name"]

    if password is not None:
        user.password_hash = hash_password(password)

    if "is_active" in patch:
        user.is_active = patch["is_active"]
        if not user.is_active:
            revoke_all_user_sessions(user.id, "User account deactivated", commit=False)

    db.session.flush()
    return user


def delete_user(principal: Principal, user_id: int) -> User:
    """
    Soft-delete an account and revoke its sessions.

    Requires outranking the target, so self-deletion and deleting an OWNER
    are always denied.
    """
    user = load_live(User, user_id)
    require(principal, Action.DELETE_USER, user)

    user.soft_delete()
    user.is_active = False
    revoke_all_user_sessions(user.id, "User account deleted", commit=False)
    db.session.flush()
    return user
