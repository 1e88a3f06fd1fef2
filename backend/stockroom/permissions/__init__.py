# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVENTORY_PERMISSIONS,
    BILL_PERMISSIONS,
    USER_PERMISSIONS,
    REQUEST_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import ROLES, DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    role_can,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "INVENTORY_PERMISSIONS",
    "BILL_PERMISSIONS",
    "USER_PERMISSIONS",
    "REQUEST_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "role_can",
]
