# Overview: Role hierarchy with explicit ordinal ranks.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """
    Staff roles in descending privilege: OWNER > ADMIN > STAFF > CASHIER.

    Values are the stable string constants stored on users and carried by
    principals. Comparisons go through ``rank`` so the authorization table
    never compares role strings.
    """
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CASHIER = "CASHIER"

    @property
    def rank(self) -> int:
        return ROLE_RANKS[self]

    def at_least(self, minimum: "Role") -> bool:
        return self.rank >= minimum.rank

    def outranks(self, other: "Role") -> bool:
        return self.rank > other.rank

    @classmethod
    def parse(cls, value) -> "Role":
        """Coerce a stored/incoming value to a Role; raises ValueError for unknown roles."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid role: {value!r}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Invalid role: {value!r}") from None


ROLE_RANKS = {
    Role.OWNER: 4,
    Role.ADMIN: 3,
    Role.STAFF: 2,
    Role.CASHIER: 1,
}

ROLE_CODES = [role.value for role in sorted(Role, key=lambda r: r.rank, reverse=True)]


def assignable_roles(creator: Role) -> list[Role]:
    """
    Roles a user may grant to others: strictly below their own.

    OWNER is never assignable; owners only come from self-registration.
    """
    return [
        role for role in sorted(Role, key=lambda r: r.rank, reverse=True)
        if role is not Role.OWNER and creator.outranks(role)
    ]
