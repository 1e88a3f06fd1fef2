# Overview: Permission category constants.


class PermissionCategory:
    """Permission categories for organization."""
    INVENTORY = "INVENTORY"
    BILLS = "BILLS"
    USERS = "USERS"
    REQUESTS = "REQUESTS"
    SYSTEM = "SYSTEM"
