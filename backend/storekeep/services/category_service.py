from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal
from ..errors import ConflictError, ValidationError
from ..models import Category, Product, Store
from ..pagination import paginate
from .authorization_service import require
from .ownership_service import load_live


def _ensure_name_available(store_id: int, name: str, *, exclude_id: int | None = None) -> None:
    query = Category.live().filter(
        Category.store_id == store_id,
        db.func.lower(Category.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError(f"Category '{name}' already exists in this store")


def create_category(principal: Principal, *, patch: dict) -> Category:
    store = load_live(Store, patch["store_id"])
    require(principal, Action.MANAGE_CATALOG, store)
    _ensure_name_available(store.id, patch["name"])

    category = Category(**patch)
    db.session.add(category)
    db.session.flush()
    return category


def update_category(principal: Principal, category_id: int, *, patch: dict) -> Category:
    category = load_live(Category, category_id)
    require(principal, Action.MANAGE_CATALOG, category)

    if "store_id" in patch and patch["store_id"] != category.store_id:
        raise ValidationError("Categories cannot move between stores")
    if "name" in patch:
        _ensure_name_available(category.store_id, patch["name"], exclude_id=category.id)
        category.name = patch["name"]
    if "description" in patch:
        category.description = patch["description"]

    db.session.flush()
    return category


def delete_category(principal: Principal, category_id: int) -> Category:
    """Soft-delete; live products in the category are detached from it."""
    category = load_live(Category, category_id)
    require(principal, Action.DELETE_CATALOG, category)

    category.soft_delete()
    for product in Product.live().filter(Product.category_id == category.id):
        product.category_id = None
    db.session.flush()
    return category


def get_category(principal: Principal, category_id: int) -> Category:
    category = load_live(Category, category_id)
    require(principal, Action.VIEW_CATALOG, category)
    return category


def list_categories(
    principal: Principal,
    *,
    store_id: int,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    store = load_live(Store, store_id)
    require(principal, Action.VIEW_CATALOG, store)

    query = Category.live().filter(Category.store_id == store.id).order_by(Category.name.asc(), Category.id.asc())
    return paginate(query, page=page, per_page=per_page)
