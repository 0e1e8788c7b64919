# Overview: Action category constants for grouping related actions.


class ActionCategory:
    """Action categories for organization and UI display."""
    STORES = "STORES"
    USERS = "USERS"
    CATALOG = "CATALOG"
    TRANSACTIONS = "TRANSACTIONS"
    PRODUCT_CHECKS = "PRODUCT_CHECKS"
