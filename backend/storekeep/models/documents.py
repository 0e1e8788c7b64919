from __future__ import annotations

from ..extensions import db
from .mixins import OwnershipChainMixin
from storekeep.time_utils import to_utc_z


# Transaction types
TRANSACTION_TYPE_SALE = "SALE"
TRANSACTION_TYPE_TRANSFER = "TRANSFER"
TRANSACTION_TYPES = (TRANSACTION_TYPE_SALE, TRANSACTION_TYPE_TRANSFER)

# Transaction states (derived, never stored)
TRANSACTION_STATE_DRAFT = "DRAFT"
TRANSACTION_STATE_AWAITING_APPROVAL = "AWAITING_APPROVAL"
TRANSACTION_STATE_APPROVED = "APPROVED"
TRANSACTION_STATE_FINISHED = "FINISHED"
TRANSACTION_STATES = (
    TRANSACTION_STATE_DRAFT,
    TRANSACTION_STATE_AWAITING_APPROVAL,
    TRANSACTION_STATE_APPROVED,
    TRANSACTION_STATE_FINISHED,
)

# Product check statuses
CHECK_STATUS_PENDING = "PENDING"
CHECK_STATUS_OK = "OK"
CHECK_STATUS_MISSING = "MISSING"
CHECK_STATUS_BROKEN = "BROKEN"
CHECK_RESOLVED_STATUSES = (CHECK_STATUS_OK, CHECK_STATUS_MISSING, CHECK_STATUS_BROKEN)
CHECK_STATUSES = (CHECK_STATUS_PENDING,) + CHECK_RESOLVED_STATUSES


def derive_transaction_state(
    *,
    type: str,
    is_finished: bool,
    approved_by: int | None,
    photo_proof_url: str | None,
) -> str:
    """
    Map the persisted flag combination onto one explicit state.

    is_finished wins, then approval; a TRANSFER with photo proof is waiting
    for approval; anything else is still a draft.
    """
    if is_finished:
        return TRANSACTION_STATE_FINISHED
    if approved_by is not None:
        return TRANSACTION_STATE_APPROVED
    if type == TRANSACTION_TYPE_TRANSFER and photo_proof_url:
        return TRANSACTION_STATE_AWAITING_APPROVAL
    return TRANSACTION_STATE_DRAFT


class Transaction(OwnershipChainMixin, db.Model):
    """
    Sale or inter-store transfer.

    LIFECYCLE:
    - SALE: finished at creation (no stock leaves a store boundary)
    - TRANSFER: DRAFT -> AWAITING_APPROVAL (photo proof) -> APPROVED
      (admin approval with transfer proof) -> FINISHED (stock moved)

    The state is derived from is_finished / approved_by / photo_proof_url
    each time the row is read; see derive_transaction_state.

    MULTI-TENANT: A TRANSFER is owned through both stores, which must agree.
    A SALE is owned through its store when it has one, else through its
    creator.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_type_finished", "type", "is_finished"),
        db.CheckConstraint(
            "type != 'TRANSFER' OR (from_store_id IS NOT NULL AND to_store_id IS NOT NULL)",
            name="transfer_requires_stores",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # SALE, TRANSFER
    type = db.Column(db.String(16), nullable=False, index=True)

    # User attribution for accountability
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    finished_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Source and destination stores (required for TRANSFER)
    from_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)
    to_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    # Optional single-line stock movement
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=True)

    amount_cents = db.Column(db.Integer, nullable=False, default=0)

    photo_proof_url = db.Column(db.String(1024), nullable=True)
    transfer_proof_url = db.Column(db.String(1024), nullable=True)
    note = db.Column(db.Text, nullable=True)

    is_finished = db.Column(db.Boolean, nullable=False, default=False)

    # Timestamps for each lifecycle stage
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    creator = db.relationship("User", foreign_keys=[created_by])
    approver = db.relationship("User", foreign_keys=[approved_by])
    finisher = db.relationship("User", foreign_keys=[finished_by])
    from_store = db.relationship("Store", foreign_keys=[from_store_id])
    to_store = db.relationship("Store", foreign_keys=[to_store_id])
    product = db.relationship("Product", backref=db.backref("transactions", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} type={self.type} state={self.state}>"

    @property
    def state(self) -> str:
        return derive_transaction_state(
            type=self.type,
            is_finished=bool(self.is_finished),
            approved_by=self.approved_by,
            photo_proof_url=self.photo_proof_url,
        )

    def owner_chain_parents(self) -> list:
        if self.type == TRANSACTION_TYPE_TRANSFER:
            return [self.from_store, self.to_store]
        if self.from_store_id is not None:
            return [self.from_store]
        return [self.creator]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "state": self.state,
            "created_by": self.created_by,
            "approved_by": self.approved_by,
            "finished_by": self.finished_by,
            "from_store_id": self.from_store_id,
            "to_store_id": self.to_store_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "amount_cents": self.amount_cents,
            "photo_proof_url": self.photo_proof_url,
            "transfer_proof_url": self.transfer_proof_url,
            "note": self.note,
            "is_finished": self.is_finished,
            "created_at": to_utc_z(self.created_at),
            "approved_at": to_utc_z(self.approved_at),
            "finished_at": to_utc_z(self.finished_at),
            "version_id": self.version_id,
        }


class ProductCheck(OwnershipChainMixin, db.Model):
    """
    Stock audit record for one product.

    LIFECYCLE:
    1. PENDING: Check opened, expected quantity snapshotted from the product
    2. OK / MISSING / BROKEN: Resolved by whoever closes the check

    APPEND-ONLY: A resolved check is never edited or reopened; a new check
    is created instead.
    """
    __tablename__ = "product_checks"
    __table_args__ = (
        db.Index("ix_product_checks_product_checked", "product_id", "checked_at"),
        db.Index("ix_product_checks_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)

    # PENDING, OK, MISSING, BROKEN
    status = db.Column(db.String(16), nullable=False, default=CHECK_STATUS_PENDING, index=True)

    expected_quantity = db.Column(db.Integer, nullable=False)
    actual_quantity = db.Column(db.Integer, nullable=True)
    note = db.Column(db.Text, nullable=True)

    checked_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    checked_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    resolved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("checks", lazy=True))
    store = db.relationship("Store")
    checker = db.relationship("User", foreign_keys=[checked_by])
    resolver = db.relationship("User", foreign_keys=[resolved_by])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<ProductCheck id={self.id} product_id={self.product_id} status={self.status}>"

    @property
    def is_resolved(self) -> bool:
        return self.status in CHECK_RESOLVED_STATUSES

    @property
    def has_discrepancy(self) -> bool:
        return self.actual_quantity is not None and self.actual_quantity != self.expected_quantity

    def owner_chain_parents(self) -> list:
        return [self.product]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "store_id": self.store_id,
            "status": self.status,
            "expected_quantity": self.expected_quantity,
            "actual_quantity": self.actual_quantity,
            "note": self.note,
            "checked_by": self.checked_by,
            "checked_at": to_utc_z(self.checked_at),
            "resolved_by": self.resolved_by,
            "resolved_at": to_utc_z(self.resolved_at),
            "version_id": self.version_id,
        }
