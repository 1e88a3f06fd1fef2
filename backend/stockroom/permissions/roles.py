# Overview: Role -> capability lookup table.
#
# A is the root admin, D the lowest level. Roles are fixed letters stored on
# the user record; there is no per-user override.

from .definitions import PERMISSION_DEFINITIONS

ROLES = ("A", "B", "C", "D")

_ALL = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)

DEFAULT_ROLE_PERMISSIONS = {
    "A": _ALL,
    "B": _ALL - {"ASSIGN_ROLES", "ALLOT_TO_OTHERS", "MANAGE_SETTINGS"},
    "C": frozenset({
        "VIEW_INVENTORY",
        "SCAN_UNITS",
        "VIEW_USERS",
        "REQUEST_CHANGES",
        "UNALLOT_ANY",
        "VIEW_NOTIFICATIONS",
        "HANDLE_NOTIFICATIONS",
    }),
    "D": frozenset({
        "SCAN_UNITS",
        "REQUEST_CHANGES",
    }),
}
