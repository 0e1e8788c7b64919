# backend/storekeep/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped through the store.
- list_products requires a store in the caller's tenant
- create_product authorizes against the target store
- update_product and delete_product authorize against the product's chain

Quantity is owned here for catalog edits; transactions move stock through
adjust_stock so every movement runs through one guarded path.
"""
from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Category, Product, Store
from ..pagination import paginate
from .authorization_service import require
from .concurrency import lock_for_update
from .ownership_service import load_live


PRODUCT_MUTABLE_FIELDS = {
    "category_id", "sku", "name", "description",
    "quantity", "purchase_price_cents", "sale_price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_sku_available(store_id: int, sku: str, *, exclude_id: int | None = None) -> None:
    query = Product.live().filter(Product.store_id == store_id, Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists for this store.")


def _check_category(store_id: int, category_id: int | None) -> None:
    if category_id is None:
        return
    category = Category.live().filter(Category.id == category_id).first()
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    if category.store_id != store_id:
        raise ValidationError("Category belongs to a different store")


def list_products(
    principal: Principal,
    *,
    store_id: int,
    category_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    List a store's live products.

    search matches name or SKU, case-insensitively.
    """
    store = load_live(Store, store_id)
    require(principal, Action.VIEW_CATALOG, store)

    query = Product.live().filter(Product.store_id == store.id)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            db.or_(db.func.lower(Product.name).like(pattern), db.func.lower(Product.sku).like(pattern))
        )

    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page=page, per_page=per_page)


def get_product(principal: Principal, product_id: int) -> Product:
    product = load_live(Product, product_id)
    require(principal, Action.VIEW_CATALOG, product)
    return product


def create_product(principal: Principal, *, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        NotFoundError: store or category missing
        AuthorizationError: other tenant, or below STAFF
        ConflictError: SKU already exists in the store
    """
    store = load_live(Store, patch["store_id"])
    require(principal, Action.MANAGE_CATALOG, store)

    _ensure_sku_available(store.id, patch["sku"])
    _check_category(store.id, patch.get("category_id"))

    p = Product(store_id=store.id, quantity=0)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()
    return p


def update_product(principal: Principal, product_id: int, *, patch: dict) -> Product:
    """
    Update a product.

    Products never move between stores: store_id in the patch must match.
    """
    p = load_live(Product, product_id, lock=True)
    require(principal, Action.MANAGE_CATALOG, p)

    if "store_id" in patch and patch["store_id"] != p.store_id:
        raise ValidationError("Products cannot move between stores")
    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_sku_available(p.store_id, patch["sku"], exclude_id=p.id)
    if "category_id" in patch:
        _check_category(p.store_id, patch["category_id"])

    apply_product_patch(p, patch)
    db.session.flush()
    return p


def delete_product(principal: Principal, product_id: int) -> Product:
    """Soft-delete only: preserve IDs and historical references."""
    p = load_live(Product, product_id, lock=True)
    require(principal, Action.DELETE_CATALOG, p)

    p.soft_delete()
    db.session.flush()
    return p


def adjust_stock(product: Product, delta: int) -> None:
    """
    Apply a stock movement to a row the caller has already locked.

    Raises ValidationError rather than letting quantity go negative.
    """
    new_qty = product.quantity + delta
    if new_qty < 0:
        raise ValidationError(
            f"Insufficient stock for {product.sku}: {product.quantity} on hand, {-delta} requested"
        )
    product.quantity = new_qty


def find_or_create_counterpart(source: Product, store_id: int) -> Product:
    """
    Live product with the same SKU in another store, created empty if the
    destination does not carry it yet.
    """
    counterpart = lock_counterpart(source.sku, store_id)
    if counterpart is not None:
        return counterpart

    counterpart = Product(
        store_id=store_id,
        sku=source.sku,
        name=source.name,
        description=source.description,
        quantity=0,
        purchase_price_cents=source.purchase_price_cents,
        sale_price_cents=source.sale_price_cents,
    )
    db.session.add(counterpart)
    db.session.flush()
    return counterpart


def lock_counterpart(sku: str, store_id: int) -> Product | None:
    return lock_for_update(
        Product.live().filter(Product.store_id == store_id, Product.sku == sku)
    ).first()
