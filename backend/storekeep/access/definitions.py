# Overview: All action definitions organized by category.
# Each action is defined as: (code, name, description, category, minimum role)

from .categories import ActionCategory
from .roles import Role


class Action:
    """Action codes passed to the authorization engine."""
    VIEW_STORES = "VIEW_STORES"
    CREATE_STORE = "CREATE_STORE"
    UPDATE_STORE = "UPDATE_STORE"
    DELETE_STORE = "DELETE_STORE"

    VIEW_USERS = "VIEW_USERS"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    VIEW_CATALOG = "VIEW_CATALOG"
    MANAGE_CATALOG = "MANAGE_CATALOG"
    DELETE_CATALOG = "DELETE_CATALOG"

    VIEW_TRANSACTIONS = "VIEW_TRANSACTIONS"
    CREATE_SALE = "CREATE_SALE"
    CREATE_TRANSFER = "CREATE_TRANSFER"
    SUBMIT_TRANSFER_PROOF = "SUBMIT_TRANSFER_PROOF"
    APPROVE_TRANSFER = "APPROVE_TRANSFER"
    FINISH_TRANSFER = "FINISH_TRANSFER"

    VIEW_PRODUCT_CHECKS = "VIEW_PRODUCT_CHECKS"
    CREATE_PRODUCT_CHECK = "CREATE_PRODUCT_CHECK"
    RESOLVE_PRODUCT_CHECK = "RESOLVE_PRODUCT_CHECK"


# -- STORES --

STORE_ACTIONS = [
    (
        Action.VIEW_STORES,
        "View Stores",
        "List and view stores in the tenant",
        ActionCategory.STORES,
        Role.CASHIER,
    ),
    (
        Action.CREATE_STORE,
        "Create Store",
        "Open a new store under the tenant",
        ActionCategory.STORES,
        Role.ADMIN,
    ),
    (
        Action.UPDATE_STORE,
        "Update Store",
        "Edit store details, operating hours and activation",
        ActionCategory.STORES,
        Role.ADMIN,
    ),
    (
        Action.DELETE_STORE,
        "Delete Store",
        "Soft-delete a store",
        ActionCategory.STORES,
        Role.ADMIN,
    ),
]


# -- USERS --

USER_ACTIONS = [
    (
        Action.VIEW_USERS,
        "View Users",
        "List and view staff accounts in the tenant",
        ActionCategory.USERS,
        Role.CASHIER,
    ),
    (
        Action.CREATE_USER,
        "Create User",
        "Create subordinate staff accounts",
        ActionCategory.USERS,
        Role.ADMIN,
    ),
    (
        Action.UPDATE_USER,
        "Update User",
        "Edit staff accounts (anyone may edit their own record)",
        ActionCategory.USERS,
        Role.ADMIN,
    ),
    (
        Action.DELETE_USER,
        "Delete User",
        "Soft-delete staff accounts",
        ActionCategory.USERS,
        Role.ADMIN,
    ),
]


# -- CATALOG --

CATALOG_ACTIONS = [
    (
        Action.VIEW_CATALOG,
        "View Catalog",
        "View categories, products and stock quantities",
        ActionCategory.CATALOG,
        Role.CASHIER,
    ),
    (
        Action.MANAGE_CATALOG,
        "Manage Catalog",
        "Create and edit categories and products",
        ActionCategory.CATALOG,
        Role.STAFF,
    ),
    (
        Action.DELETE_CATALOG,
        "Delete Catalog Items",
        "Soft-delete categories and products",
        ActionCategory.CATALOG,
        Role.ADMIN,
    ),
]


# -- TRANSACTIONS --

TRANSACTION_ACTIONS = [
    (
        Action.VIEW_TRANSACTIONS,
        "View Transactions",
        "List and view sales and transfers",
        ActionCategory.TRANSACTIONS,
        Role.CASHIER,
    ),
    (
        Action.CREATE_SALE,
        "Create Sale",
        "Record a completed sale",
        ActionCategory.TRANSACTIONS,
        Role.CASHIER,
    ),
    (
        Action.CREATE_TRANSFER,
        "Create Transfer",
        "Request an inventory transfer between two stores",
        ActionCategory.TRANSACTIONS,
        Role.CASHIER,
    ),
    (
        Action.SUBMIT_TRANSFER_PROOF,
        "Submit Transfer Proof",
        "Attach photo or transfer proof to an open transfer",
        ActionCategory.TRANSACTIONS,
        Role.CASHIER,
    ),
    (
        Action.APPROVE_TRANSFER,
        "Approve Transfer",
        "Approve a transfer awaiting approval",
        ActionCategory.TRANSACTIONS,
        Role.ADMIN,
    ),
    (
        Action.FINISH_TRANSFER,
        "Finish Transfer",
        "Complete an approved transfer and move stock",
        ActionCategory.TRANSACTIONS,
        Role.STAFF,
    ),
]


# -- PRODUCT CHECKS --

PRODUCT_CHECK_ACTIONS = [
    (
        Action.VIEW_PRODUCT_CHECKS,
        "View Product Checks",
        "View stock audit records",
        ActionCategory.PRODUCT_CHECKS,
        Role.CASHIER,
    ),
    (
        Action.CREATE_PRODUCT_CHECK,
        "Create Product Check",
        "Open a stock audit for a product",
        ActionCategory.PRODUCT_CHECKS,
        Role.STAFF,
    ),
    (
        Action.RESOLVE_PRODUCT_CHECK,
        "Resolve Product Check",
        "Close a pending stock audit with its outcome",
        ActionCategory.PRODUCT_CHECKS,
        Role.STAFF,
    ),
]


ACTION_DEFINITIONS = (
    STORE_ACTIONS
    + USER_ACTIONS
    + CATALOG_ACTIONS
    + TRANSACTION_ACTIONS
    + PRODUCT_CHECK_ACTIONS
)

# Any role may perform these on their own User record
SELF_SCOPED_ACTIONS = frozenset({Action.VIEW_USERS, Action.UPDATE_USER})

# Acting on another user requires strictly outranking them
OUTRANK_REQUIRED_ACTIONS = frozenset({Action.UPDATE_USER, Action.DELETE_USER})
