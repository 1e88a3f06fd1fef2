# Overview: Lookups over the capability table and the role table.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS

_BY_CODE = {perm[0]: perm for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    return list(_BY_CODE)


def get_permissions_by_category(category):
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """{code, name, description, category} or None."""
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    code, name, description, category = perm
    return {"code": code, "name": name, "description": description, "category": category}


def validate_permission_code(code):
    return code in _BY_CODE


def role_can(role, code):
    """
    Single capability check: (role, action) -> allow/deny.

    Unknown roles and unknown codes are denied.
    """
    return code in DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())
