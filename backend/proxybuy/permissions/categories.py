# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    ORDERS = "ORDERS"
    USERS = "USERS"
    MESSAGING = "MESSAGING"
    CONTENT = "CONTENT"
