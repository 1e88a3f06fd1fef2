# Overview: All capability definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "Browse items, units, lots and the dashboard summary",
        PermissionCategory.INVENTORY,
    ),
    (
        "SCAN_UNITS",
        "Scan Units",
        "Look up a single unit by its scanned ID",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_ITEMS",
        "Manage Items",
        "Create and edit items and add units",
        PermissionCategory.INVENTORY,
    ),
    (
        "DELETE_RECORDS",
        "Delete Records",
        "Delete items, units, lots, bills and users (passkey confirmed)",
        PermissionCategory.INVENTORY,
    ),
]


# -- BILLS --

BILL_PERMISSIONS = [
    (
        "MANAGE_BILLS",
        "Manage Bills",
        "Create and edit purchase bills and their units",
        PermissionCategory.BILLS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "Browse the user directory",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Add and edit users",
        PermissionCategory.USERS,
    ),
    (
        "ASSIGN_ROLES",
        "Assign Roles",
        "Change a user's access level (auth passkey confirmed)",
        PermissionCategory.USERS,
    ),
]


# -- REQUESTS --

REQUEST_PERMISSIONS = [
    (
        "REQUEST_CHANGES",
        "Request Changes",
        "Submit allot, unallot, discard and restore requests",
        PermissionCategory.REQUESTS,
    ),
    (
        "ALLOT_TO_OTHERS",
        "Allot To Others",
        "Request an allotment on behalf of another person",
        PermissionCategory.REQUESTS,
    ),
    (
        "UNALLOT_ANY",
        "Unallot Any Unit",
        "Request return of units assigned to someone else",
        PermissionCategory.REQUESTS,
    ),
    (
        "VIEW_NOTIFICATIONS",
        "View Notifications",
        "See the approval queue",
        PermissionCategory.REQUESTS,
    ),
    (
        "HANDLE_NOTIFICATIONS",
        "Handle Notifications",
        "Approve or reject pending requests",
        PermissionCategory.REQUESTS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "MANAGE_SETTINGS",
        "Manage Settings",
        "Change passkeys and the contact email",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + BILL_PERMISSIONS
    + USER_PERMISSIONS
    + REQUEST_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
