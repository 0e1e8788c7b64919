# backend/storekeep/services/product_check_service.py
"""
Product checks (stock audits).

WHY: Staff verify on-hand quantities against the system. Each check is an
append-only audit record.

LIFECYCLE:
1. PENDING: Check opened, product quantity snapshotted as expected_quantity
2. OK / MISSING / BROKEN: Resolved once; never edited or reopened

A resolved check is corrected by opening a new one. Resolving does not
change product stock.

Services flush but never commit; the route owns the transaction.
"""
from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal
from ..errors import InvalidStateError, ValidationError, REASON_ALREADY_RESOLVED
from ..models import Product, ProductCheck, Store
from ..models.documents import (
    CHECK_RESOLVED_STATUSES,
    CHECK_STATUSES,
    CHECK_STATUS_PENDING,
)
from ..pagination import paginate
from storekeep.time_utils import utcnow
from .authorization_service import require
from .concurrency import flush_transition
from .ownership_service import load_live, resolve_tenant, tenant_root


def create_check(principal: Principal, *, product_id: int, note: str | None = None) -> ProductCheck:
    """
    Open a PENDING check for a live product in the principal's tenant.

    Raises:
        NotFoundError: product (or its store) missing or deleted
        AuthorizationError: other tenant, or below STAFF
    """
    product = load_live(Product, product_id)
    require(principal, Action.CREATE_PRODUCT_CHECK, product)

    check = ProductCheck(
        product_id=product.id,
        store_id=product.store_id,
        status=CHECK_STATUS_PENDING,
        expected_quantity=product.quantity,
        note=note,
        checked_by=principal.user_id,
        checked_at=utcnow(),
    )
    db.session.add(check)
    db.session.flush()
    return check


def resolve_check(
    principal: Principal,
    check_id: int,
    *,
    status: str,
    actual_quantity: int | None = None,
    note: str | None = None,
) -> ProductCheck:
    """
    Close a PENDING check with its outcome.

    Raises:
        ValidationError: status not OK/MISSING/BROKEN, bad actual_quantity
        InvalidStateError: check already resolved (or resolved concurrently)
    """
    check = load_live(ProductCheck, check_id, lock=True)
    require(principal, Action.RESOLVE_PRODUCT_CHECK, check)

    if status not in CHECK_RESOLVED_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(CHECK_RESOLVED_STATUSES)}")
    if actual_quantity is not None and actual_quantity < 0:
        raise ValidationError("actual_quantity must be >= 0")

    if check.status != CHECK_STATUS_PENDING:
        raise InvalidStateError(
            f"Product check {check.id} is already {check.status}; open a new check instead",
            reason=REASON_ALREADY_RESOLVED,
        )

    check.status = status
    check.actual_quantity = actual_quantity
    if note is not None:
        check.note = note
    check.resolved_by = principal.user_id
    check.resolved_at = utcnow()

    flush_transition(check, f"Product check {check.id}")
    return check


def get_check(principal: Principal, check_id: int) -> ProductCheck:
    check = load_live(ProductCheck, check_id)
    require(principal, Action.VIEW_PRODUCT_CHECKS, check)
    return check


def _tenant_checks(principal: Principal):
    """Checks joined to their store, restricted to the principal's tenant."""
    return (
        db.session.query(ProductCheck)
        .join(Store, ProductCheck.store_id == Store.id)
        .filter(Store.owner_id == resolve_tenant(principal))
    )


def list_checks(
    principal: Principal,
    *,
    product_id: int | None = None,
    store_id: int | None = None,
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Newest first. Filtering by product gives that product's check history."""
    require(principal, Action.VIEW_PRODUCT_CHECKS, tenant_root(principal))

    query = _tenant_checks(principal)
    if product_id is not None:
        query = query.filter(ProductCheck.product_id == product_id)
    if store_id is not None:
        query = query.filter(ProductCheck.store_id == store_id)
    if status is not None:
        if status not in CHECK_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(CHECK_STATUSES)}")
        query = query.filter(ProductCheck.status == status)

    query = query.order_by(ProductCheck.checked_at.desc(), ProductCheck.id.desc())
    return paginate(query, page=page, per_page=per_page)


def check_statistics(principal: Principal, *, store_id: int | None = None) -> dict:
    """Count of the tenant's checks per status; every status is present."""
    require(principal, Action.VIEW_PRODUCT_CHECKS, tenant_root(principal))

    query = (
        db.session.query(ProductCheck.status, db.func.count(ProductCheck.id))
        .join(Store, ProductCheck.store_id == Store.id)
        .filter(Store.owner_id == resolve_tenant(principal))
    )
    if store_id is not None:
        query = query.filter(ProductCheck.store_id == store_id)

    counts = {status: 0 for status in CHECK_STATUSES}
    for status, count in query.group_by(ProductCheck.status).all():
        counts[status] = count

    return {"by_status": counts, "total": sum(counts.values())}


def list_discrepancies(
    principal: Principal,
    *,
    store_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Resolved checks whose counted quantity differs from the snapshot."""
    require(principal, Action.VIEW_PRODUCT_CHECKS, tenant_root(principal))

    query = _tenant_checks(principal).filter(
        ProductCheck.actual_quantity.isnot(None),
        ProductCheck.actual_quantity != ProductCheck.expected_quantity,
    )
    if store_id is not None:
        query = query.filter(ProductCheck.store_id == store_id)

    query = query.order_by(ProductCheck.checked_at.desc(), ProductCheck.id.desc())
    return paginate(query, page=page, per_page=per_page)
