from __future__ import annotations

from ..extensions import db
from .mixins import SoftDeleteMixin, OwnershipChainMixin
from storekeep.time_utils import to_utc_z


class Category(SoftDeleteMixin, OwnershipChainMixin, db.Model):
    """
    Product grouping within a store.

    MULTI-TENANT: Categories are scoped to stores via store_id.
    Store belongs to an owner, so categories are transitively tenant-scoped.
    Names are unique among a store's live categories (enforced in the service
    because soft-deleted rows keep their names).
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_store_name", "store_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("categories", lazy=True))

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} store_id={self.store_id}>"

    def owner_chain_parents(self) -> list:
        return [self.store]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(SoftDeleteMixin, OwnershipChainMixin, db.Model):
    """
    Product master data with on-hand quantity.

    MULTI-TENANT: Products are scoped to stores via store_id.
    Store belongs to an owner, so products are transitively tenant-scoped.

    SKU DESIGN DECISION:
    - SKUs are unique among a store's live products
    - The same SKU in two stores of one tenant identifies the same article;
      transfers move stock between those rows

    Prices are stored in cents (frontend may only format for display).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_store_sku", "store_id", "sku"),
        db.Index("ix_products_store_name", "store_id", "name"),
        db.CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    purchase_price_cents = db.Column(db.Integer, nullable=True)
    sale_price_cents = db.Column(db.Integer, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} store_id={self.store_id}>"

    def owner_chain_parents(self) -> list:
        return [self.store]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "category_id": self.category_id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "purchase_price_cents": self.purchase_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
