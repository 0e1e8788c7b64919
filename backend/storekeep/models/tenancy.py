from __future__ import annotations

from ..extensions import db
from .mixins import SoftDeleteMixin, OwnershipChainMixin
from storekeep.time_utils import to_utc_z


class Store(SoftDeleteMixin, OwnershipChainMixin, db.Model):
    """
    Store within a tenant.

    MULTI-TENANT: Stores are scoped to their OWNER via owner_id, which
    always equals the tenant of the user who created the store.
    Store codes are unique within a tenant, not globally.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "code", name="uq_stores_owner_code"),
        db.Index("ix_stores_owner_active", "owner_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=False)

    # Address and contact
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # Operating hours as 24h "HH:MM" in the store's timezone
    opening_time = db.Column(db.String(5), nullable=True)
    closing_time = db.Column(db.String(5), nullable=True)
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", foreign_keys=[owner_id], backref=db.backref("stores", lazy=True))
    creator = db.relationship("User", foreign_keys=[created_by])

    def __repr__(self) -> str:
        return f"<Store id={self.id} code={self.code!r} owner_id={self.owner_id}>"

    def owner_chain_parents(self) -> list:
        return [self.owner]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "city": self.city,
            "phone": self.phone,
            "email": self.email,
            "opening_time": self.opening_time,
            "closing_time": self.closing_time,
            "timezone": self.timezone,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
