# backend/storekeep/services/transaction_service.py
"""
Sales and inter-store transfers.

WHY: Stock may only leave a store through a recorded transaction, and a
transfer may only complete after an ADMIN has seen proof of it.

LIFECYCLE:
- SALE: created FINISHED (no approval, stock decremented immediately)
- TRANSFER:
  1. DRAFT: Created, no photo proof yet
  2. AWAITING_APPROVAL: Photo proof submitted
  3. APPROVED: ADMIN approved with transfer proof on file
  4. FINISHED: Stock moved from source to destination store

Every transition:
- authorizes first (no write before ALLOW)
- re-reads the row under SELECT ... FOR UPDATE
- checks the derived state against TRANSITIONS
- flushes so a concurrent writer's version bump fails inside the request

Services flush but never commit; the route owns the transaction.
"""
from __future__ import annotations

from ..extensions import db
from ..access import Action, Principal
from ..errors import (
    IntegrityError,
    InvalidStateError,
    ValidationError,
    REASON_ALREADY_APPROVED,
    REASON_ALREADY_FINISHED,
    REASON_NOT_APPROVED,
    REASON_NOT_TRANSFER,
)
from ..models import Product, Store, Transaction, User
from ..models.documents import (
    TRANSACTION_STATES,
    TRANSACTION_STATE_APPROVED,
    TRANSACTION_STATE_AWAITING_APPROVAL,
    TRANSACTION_STATE_DRAFT,
    TRANSACTION_STATE_FINISHED,
    TRANSACTION_TYPES,
    TRANSACTION_TYPE_SALE,
    TRANSACTION_TYPE_TRANSFER,
)
from ..pagination import paginate
from storekeep.time_utils import utcnow
from .authorization_service import require
from .concurrency import flush_transition
from .ownership_service import load_live, resolve_tenant, tenant_root
from .products_service import adjust_stock, find_or_create_counterpart


# Transition name -> states a TRANSFER may be in for it to proceed
OP_SUBMIT_PROOF = "submit proof for"
OP_APPROVE = "approve"
OP_FINISH = "finish"

TRANSITIONS = {
    OP_SUBMIT_PROOF: frozenset({TRANSACTION_STATE_DRAFT, TRANSACTION_STATE_AWAITING_APPROVAL}),
    OP_APPROVE: frozenset({TRANSACTION_STATE_AWAITING_APPROVAL}),
    OP_FINISH: frozenset({TRANSACTION_STATE_APPROVED}),
}

# Why a transition out of a given state was refused
_BLOCKED_REASONS = {
    TRANSACTION_STATE_DRAFT: REASON_NOT_APPROVED,
    TRANSACTION_STATE_AWAITING_APPROVAL: REASON_NOT_APPROVED,
    TRANSACTION_STATE_APPROVED: REASON_ALREADY_APPROVED,
    TRANSACTION_STATE_FINISHED: REASON_ALREADY_FINISHED,
}


def check_transition(txn: Transaction, op: str) -> None:
    """
    Raise unless op is legal for txn right now.

    SALEs never transition after creation: finishing one is a state error
    (it is already FINISHED), any other transition is a ValidationError.
    """
    if txn.type != TRANSACTION_TYPE_TRANSFER:
        if op == OP_FINISH:
            raise InvalidStateError(
                f"Transaction {txn.id} is a sale and was finished at creation",
                reason=REASON_ALREADY_FINISHED,
            )
        raise ValidationError(
            f"Cannot {op} transaction {txn.id}: only transfers have this step",
            reason=REASON_NOT_TRANSFER,
        )

    state = txn.state
    if state not in TRANSITIONS[op]:
        raise InvalidStateError(
            f"Cannot {op} transfer {txn.id} in state {state}",
            reason=_BLOCKED_REASONS[state],
        )


def _lock_transaction(transaction_id: int) -> Transaction:
    return load_live(Transaction, transaction_id, lock=True)


def create_sale(
    principal: Principal,
    *,
    store_id: int | None = None,
    product_id: int | None = None,
    quantity: int | None = None,
    amount_cents: int | None = None,
    photo_proof_url: str | None = None,
    note: str | None = None,
) -> Transaction:
    """
    Record a completed sale (FINISHED at creation).

    With a product, the product's store is the selling store and its stock
    is decremented; amount defaults to sale price x quantity.

    Raises:
        ValidationError: store/product mismatch or insufficient stock
        NotFoundError: store or product missing
        AuthorizationError: other tenant
    """
    product = None
    if product_id is not None:
        product = load_live(Product, product_id)
        require(principal, Action.CREATE_SALE, product)
        if store_id is not None and store_id != product.store_id:
            raise ValidationError("Product does not belong to the selling store")
        store_id = product.store_id

    target = load_live(Store, store_id) if store_id is not None else tenant_root(principal)
    require(principal, Action.CREATE_SALE, target)

    if product is not None:
        if not quantity or quantity <= 0:
            raise ValidationError("quantity must be > 0")
        product = load_live(Product, product.id, lock=True)
        adjust_stock(product, -quantity)
        if amount_cents is None:
            amount_cents = product.sale_price_cents * quantity

    now = utcnow()
    txn = Transaction(
        type=TRANSACTION_TYPE_SALE,
        created_by=principal.user_id,
        from_store_id=store_id,
        product_id=product_id,
        quantity=quantity if product is not None else None,
        amount_cents=amount_cents or 0,
        photo_proof_url=photo_proof_url,
        note=note,
        is_finished=True,
        finished_by=principal.user_id,
        finished_at=now,
    )
    db.session.add(txn)
    db.session.flush()
    return txn


def create_transfer(
    principal: Principal,
    *,
    from_store_id: int | None = None,
    to_store_id: int | None = None,
    product_id: int | None = None,
    quantity: int | None = None,
    amount_cents: int | None = None,
    photo_proof_url: str | None = None,
    transfer_proof_url: str | None = None,
    note: str | None = None,
) -> Transaction:
    """
    Request a transfer between two stores of the principal's tenant.

    Starts in AWAITING_APPROVAL when photo proof is supplied, else DRAFT.
    Stock is checked here but only moves on finish.

    Raises:
        ValidationError: store ids missing or equal, product not in source
            store, insufficient stock
        NotFoundError: store or product missing
        AuthorizationError: either store in another tenant
    """
    if from_store_id is None or to_store_id is None:
        raise ValidationError("Transfers require both from_store_id and to_store_id")
    if from_store_id == to_store_id:
        raise ValidationError("Cannot transfer to the same store")

    from_store = load_live(Store, from_store_id)
    to_store = load_live(Store, to_store_id)
    require(principal, Action.CREATE_TRANSFER, from_store)
    require(principal, Action.CREATE_TRANSFER, to_store)

    if product_id is not None:
        product = load_live(Product, product_id)
        if product.store_id != from_store.id:
            raise ValidationError("Product does not belong to the source store")
        if not quantity or quantity <= 0:
            raise ValidationError("quantity must be > 0")
        if product.quantity < quantity:
            raise ValidationError(
                f"Insufficient stock for {product.sku}: {product.quantity} on hand, {quantity} requested"
            )

    txn = Transaction(
        type=TRANSACTION_TYPE_TRANSFER,
        created_by=principal.user_id,
        from_store_id=from_store.id,
        to_store_id=to_store.id,
        product_id=product_id,
        quantity=quantity if product_id is not None else None,
        amount_cents=amount_cents or 0,
        photo_proof_url=photo_proof_url or None,
        transfer_proof_url=transfer_proof_url or None,
        note=note,
        is_finished=False,
    )
    db.session.add(txn)
    db.session.flush()
    return txn


def submit_transfer_proof(
    principal: Principal,
    transaction_id: int,
    *,
    photo_proof_url: str | None = None,
    transfer_proof_url: str | None = None,
) -> Transaction:
    """Attach proof to an open transfer; photo proof moves DRAFT to AWAITING_APPROVAL."""
    if not photo_proof_url and not transfer_proof_url:
        raise ValidationError("photo_proof_url or transfer_proof_url is required")

    txn = _lock_transaction(transaction_id)
    require(principal, Action.SUBMIT_TRANSFER_PROOF, txn)
    check_transition(txn, OP_SUBMIT_PROOF)

    if photo_proof_url:
        txn.photo_proof_url = photo_proof_url
    if transfer_proof_url:
        txn.transfer_proof_url = transfer_proof_url

    flush_transition(txn, f"Transaction {txn.id}")
    return txn


def approve_transfer(
    principal: Principal,
    transaction_id: int,
    *,
    transfer_proof_url: str | None = None,
) -> Transaction:
    """
    Approve a transfer awaiting approval (ADMIN or above).

    Photo proof must already be on file (a DRAFT has none yet). Transfer
    proof may be supplied in this call.

    Raises:
        AuthorizationError: below ADMIN or other tenant
        ValidationError: SALE, or proof missing
        InvalidStateError: already APPROVED or FINISHED, or lost a race
    """
    txn = _lock_transaction(transaction_id)
    require(principal, Action.APPROVE_TRANSFER, txn)
    if txn.type == TRANSACTION_TYPE_TRANSFER and txn.state == TRANSACTION_STATE_DRAFT:
        raise ValidationError("Photo proof is required before approval")
    check_transition(txn, OP_APPROVE)

    if transfer_proof_url:
        txn.transfer_proof_url = transfer_proof_url

    if not txn.transfer_proof_url:
        raise ValidationError("Transfer proof is required to approve a transfer")

    txn.approved_by = principal.user_id
    txn.approved_at = utcnow()

    flush_transition(txn, f"Transaction {txn.id}")
    return txn


def finish_transaction(principal: Principal, transaction_id: int) -> Transaction:
    """
    Complete an APPROVED transfer and move its stock.

    The destination store receives the quantity on its product with the
    same SKU, created there if it does not exist yet.

    Raises:
        InvalidStateError: SALE, unapproved or already finished transfer
    """
    txn = _lock_transaction(transaction_id)
    require(principal, Action.FINISH_TRANSFER, txn)
    check_transition(txn, OP_FINISH)

    if txn.product_id is not None:
        source = load_live(Product, txn.product_id, lock=True)
        if source.store_id != txn.from_store_id:
            raise IntegrityError(f"Transfer {txn.id} product is not stocked in its source store")
        adjust_stock(source, -txn.quantity)
        destination = find_or_create_counterpart(source, txn.to_store_id)
        adjust_stock(destination, txn.quantity)

    txn.is_finished = True
    txn.finished_by = principal.user_id
    txn.finished_at = utcnow()

    flush_transition(txn, f"Transaction {txn.id}")
    return txn


def get_transaction(principal: Principal, transaction_id: int) -> Transaction:
    txn = load_live(Transaction, transaction_id)
    require(principal, Action.VIEW_TRANSACTIONS, txn)
    return txn


def _state_filter(state: str):
    has_photo = db.and_(
        Transaction.photo_proof_url.isnot(None),
        Transaction.photo_proof_url != "",
    )
    open_unapproved = db.and_(
        Transaction.is_finished.is_(False),
        Transaction.approved_by.is_(None),
    )
    if state == TRANSACTION_STATE_FINISHED:
        return Transaction.is_finished.is_(True)
    if state == TRANSACTION_STATE_APPROVED:
        return db.and_(Transaction.is_finished.is_(False), Transaction.approved_by.isnot(None))
    awaiting = db.and_(Transaction.type == TRANSACTION_TYPE_TRANSFER, has_photo)
    if state == TRANSACTION_STATE_AWAITING_APPROVAL:
        return db.and_(open_unapproved, awaiting)
    return db.and_(open_unapproved, db.not_(awaiting))


def list_transactions(
    principal: Principal,
    *,
    type: str | None = None,
    state: str | None = None,
    store_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    List the tenant's transactions, newest first.

    MULTI-TENANT: Rows are matched through their creator, who always
    belongs to the tenant that owns the transaction.
    """
    require(principal, Action.VIEW_TRANSACTIONS, tenant_root(principal))
    tenant = resolve_tenant(principal)

    query = (
        db.session.query(Transaction)
        .join(User, Transaction.created_by == User.id)
        .filter(db.or_(User.id == tenant, User.owner_id == tenant))
    )

    if type is not None:
        if type not in TRANSACTION_TYPES:
            raise ValidationError(f"type must be one of {', '.join(TRANSACTION_TYPES)}")
        query = query.filter(Transaction.type == type)
    if state is not None:
        if state not in TRANSACTION_STATES:
            raise ValidationError(f"state must be one of {', '.join(TRANSACTION_STATES)}")
        query = query.filter(_state_filter(state))
    if store_id is not None:
        query = query.filter(db.or_(Transaction.from_store_id == store_id, Transaction.to_store_id == store_id))

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return paginate(query, page=page, per_page=per_page)
