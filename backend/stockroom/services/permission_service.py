# Overview: Role capability checks for inventory actions.

"""
Permission Checking

Roles are a fixed lookup table (see permissions.roles). Checks fail
closed: unknown roles and unknown codes are denied. Denials are logged;
grants are not.
"""

from __future__ import annotations

from flask import current_app

from ..permissions import DEFAULT_ROLE_PERMISSIONS, role_can


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def get_role_permissions(role: str | None) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, frozenset()))


def get_user_permissions(user: dict | None) -> set[str]:
    if not user:
        return set()
    return get_role_permissions(user.get("role"))


def user_has_permission(user: dict | None, permission_code: str) -> bool:
    return bool(user) and role_can(user.get("role"), permission_code)


def require_permission(user: dict | None, permission_code: str, resource: str | None = None) -> None:
    """Raise PermissionDeniedError unless ``user``'s role grants ``permission_code``."""
    if user_has_permission(user, permission_code):
        return
    current_app.logger.warning(
        "Permission denied: person=%s role=%s permission=%s resource=%s",
        (user or {}).get("personId"),
        (user or {}).get("role"),
        permission_code,
        resource,
    )
    raise PermissionDeniedError(f"Missing permission: {permission_code}")
