# Overview: The authenticated identity passed explicitly through services.

from __future__ import annotations

from dataclasses import dataclass

from .roles import Role


@dataclass(frozen=True)
class Principal:
    """
    Who is acting: rebuilt from the user row on every request.

    owner_id is None only for an OWNER, who is the tenant root.
    """
    user_id: int
    role: Role
    owner_id: int | None = None

    @classmethod
    def for_user(cls, user) -> "Principal":
        return cls(user_id=user.id, role=Role.parse(user.role), owner_id=user.owner_id)

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "owner_id": self.owner_id,
        }
