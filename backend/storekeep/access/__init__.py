# Overview: Role hierarchy and action table package.
# Re-exports all public APIs for short imports.

from .categories import ActionCategory
from .roles import Role, ROLE_RANKS, ROLE_CODES, assignable_roles
from .definitions import (
    Action,
    ACTION_DEFINITIONS,
    STORE_ACTIONS,
    USER_ACTIONS,
    CATALOG_ACTIONS,
    TRANSACTION_ACTIONS,
    PRODUCT_CHECK_ACTIONS,
    SELF_SCOPED_ACTIONS,
    OUTRANK_REQUIRED_ACTIONS,
)
from .helpers import (
    get_all_action_codes,
    get_action_definition,
    minimum_role,
    validate_action_code,
    actions_for_role,
)
from .principal import Principal

__all__ = [
    "ActionCategory",
    "Role",
    "ROLE_RANKS",
    "ROLE_CODES",
    "assignable_roles",
    "Action",
    "ACTION_DEFINITIONS",
    "STORE_ACTIONS",
    "USER_ACTIONS",
    "CATALOG_ACTIONS",
    "TRANSACTION_ACTIONS",
    "PRODUCT_CHECK_ACTIONS",
    "SELF_SCOPED_ACTIONS",
    "OUTRANK_REQUIRED_ACTIONS",
    "get_all_action_codes",
    "get_action_definition",
    "minimum_role",
    "validate_action_code",
    "actions_for_role",
    "Principal",
]
