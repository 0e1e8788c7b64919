from __future__ import annotations

from ..extensions import db
from storekeep.time_utils import utcnow


class SoftDeleteMixin:
    """
    Rows are never hard-deleted while references exist; deletion stamps
    deleted_at and default queries go through ``live()``.
    """
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()

    @classmethod
    def live(cls):
        return db.session.query(cls).filter(cls.deleted_at.is_(None))


class OwnershipChainMixin:
    """
    Capability every tenant-scoped model implements so the ownership
    resolver can walk foreign keys up to the owning OWNER without knowing
    each entity's join path.

    - tenant_root_id(): the tenant id when this row *is* a tenant root
      (an OWNER user), else None.
    - owner_chain_parents(): the next hop(s) towards the root. A None entry
      means a required link is missing. Several entries must all resolve to
      the same tenant.
    """

    def tenant_root_id(self) -> int | None:
        return None

    def owner_chain_parents(self) -> list:
        raise NotImplementedError(f"{type(self).__name__} does not define an ownership chain")

    @property
    def chain_label(self) -> str:
        return f"{type(self).__name__} {getattr(self, 'id', None)}"
