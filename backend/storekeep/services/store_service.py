from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal
from ..errors import ConflictError
from ..models import Store
from ..pagination import paginate
from .authorization_service import require
from .ownership_service import load_live, resolve_tenant, tenant_root


def _ensure_code_available(owner_id: int, code: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(Store.id).filter(Store.owner_id == owner_id, Store.code == code)
    if exclude_id is not None:
        query = query.filter(Store.id != exclude_id)
    if query.first():
        raise ConflictError(f"Store code '{code}' already exists")


def create_store(principal: Principal, *, patch: dict) -> Store:
    require(principal, Action.CREATE_STORE, tenant_root(principal))
    owner_id = resolve_tenant(principal)

    code = patch["code"].upper()
    _ensure_code_available(owner_id, code)

    store = Store(
        owner_id=owner_id,
        created_by=principal.user_id,
        **{**patch, "code": code},
    )
    db.session.add(store)
    db.session.flush()
    return store


def update_store(principal: Principal, store_id: int, *, patch: dict) -> Store:
    store = load_live(Store, store_id, lock=True)
    require(principal, Action.UPDATE_STORE, store)

    if "code" in patch:
        patch = {**patch, "code": patch["code"].upper()}
        _ensure_code_available(store.owner_id, patch["code"], exclude_id=store.id)

    for key, value in patch.items():
        setattr(store, key, value)

    db.session.flush()
    return store


def delete_store(principal: Principal, store_id: int) -> Store:
    """Soft-delete; products and checks beneath it stop resolving."""
    store = load_live(Store, store_id, lock=True)
    require(principal, Action.DELETE_STORE, store)

    store.soft_delete()
    store.is_active = False
    db.session.flush()
    return store


def get_store(principal: Principal, store_id: int) -> Store:
    store = load_live(Store, store_id)
    require(principal, Action.VIEW_STORES, store)
    return store


def list_stores(
    principal: Principal,
    *,
    include_inactive: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    require(principal, Action.VIEW_STORES, tenant_root(principal))

    query = Store.live().filter(Store.owner_id == resolve_tenant(principal))
    if not include_inactive:
        query = query.filter(Store.is_active.is_(True))

    return paginate(query.order_by(Store.name.asc(), Store.id.asc()), page=page, per_page=per_page)
