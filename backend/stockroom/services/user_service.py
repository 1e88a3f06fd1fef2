# Overview: Service-layer operations for the user directory on the inventory tree.

"""
User Directory

Users are keyed by personId (issued by the identity provider) and must be
unique by personId, email and phone; see uniqueness_service.

Assignment snapshots on units copy the assignee's contact details at
allotment time. Editing a user pushes the new details into every snapshot
that points at them; deleting a user returns their units to Available.
"""

from __future__ import annotations

from flask import current_app

from . import store_service
from .concurrency import retry_on_conflict
from .identifier_service import new_notification_id
from .lifecycle_service import release_unit
from .results import ActionResult
from .store_service import UNSET
from .uniqueness_service import check_user_uniqueness
from ..permissions import ROLES
from ..time_utils import now_iso
from ..validation import ValidationError, parse_new_user


DEFAULT_ROLE = "D"
FIRST_USER_ROLE = "C"
ROOT_ROLE = "A"

_SNAPSHOT_FIELDS = ("name", "phone", "email", "department", "section")


def build_user(data: dict, *, role: str) -> dict:
    """User record from NewUserData / AssignmentDetails."""
    return {
        "personId": data["personId"],
        "name": data["name"],
        "email": data["email"],
        "phone": data["phone"],
        "department": data.get("department", UNSET),
        "section": data.get("section", UNSET),
        "joiningDate": now_iso(),
        "role": role,
    }


def find_user(tree: dict, person_id: str) -> dict | None:
    for user in tree["users"]:
        if user.get("personId") == person_id:
            return user
    return None


def find_user_by_email(tree: dict, email: str) -> dict | None:
    target = (email or "").strip().lower()
    for user in tree["users"]:
        if (user.get("email") or "").lower() == target:
            return user
    return None


def list_users() -> list[dict]:
    return store_service.load()["users"]


def get_user(person_id: str) -> dict | None:
    """User plus the units currently assigned to them."""
    tree = store_service.load()
    user = find_user(tree, person_id)
    if user is None:
        return None
    assigned = []
    for item in tree["items"]:
        for sub_item in item.get("subItems") or []:
            if (sub_item.get("assignedTo") or {}).get("personId") == person_id:
                assigned.append({"itemId": item.get("id"), "itemName": item.get("name"), "subItem": sub_item})
    return {**user, "assignedUnits": assigned}


@retry_on_conflict
def add_user_as_admin(payload: dict) -> ActionResult:
    try:
        data = parse_new_user(payload)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    clash = check_user_uniqueness(
        tree, person_id=data["personId"], email=data["email"], phone=data["phone"]
    )
    if clash:
        return ActionResult.fail(clash)

    tree["users"].insert(0, build_user(data, role=DEFAULT_ROLE))
    store_service.save({"users": tree["users"]}, invalidate=("/users",))
    current_app.logger.info("Added user %s", data["personId"])
    return ActionResult.ok(f"User {data['name']} added successfully.")


@retry_on_conflict
def request_registration(payload: dict) -> ActionResult:
    """Queue a pending `register` notification for an admin to approve."""
    try:
        data = parse_new_user(payload)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    clash = check_user_uniqueness(
        tree, person_id=data["personId"], email=data["email"], phone=data["phone"]
    )
    if clash:
        return ActionResult.fail(clash)

    notification = {
        "id": new_notification_id(tree["notifications"], registration=True),
        "type": "register",
        "status": "pending",
        "createdAt": now_iso(),
        "requestedData": {"newUser": data},
    }
    tree["notifications"].insert(0, notification)
    store_service.save({"notifications": tree["notifications"]}, invalidate=("/notifications",))
    current_app.logger.info("Registration requested for %s", data["personId"])
    return ActionResult.ok(
        "Registration request submitted successfully. "
        "Please wait for an admin to approve your account.",
        data={"id": notification["id"]},
    )


@retry_on_conflict
def update_user(original_person_id: str, payload: dict) -> ActionResult:
    """
    Replace a user's details, keeping joiningDate and (unless given) role.

    A changed personId is carried into every assignment snapshot, then all
    of the user's snapshots are refreshed from the new details.
    """
    try:
        data = parse_new_user(payload)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    existing = find_user(tree, original_person_id)
    if existing is None:
        return ActionResult.fail("User not found.")

    role = (payload or {}).get("role") or existing.get("role")
    if role not in ROLES:
        return ActionResult.fail(f"Role must be one of: {', '.join(ROLES)}.")
    if existing.get("role") == ROOT_ROLE and role != ROOT_ROLE:
        return ActionResult.fail("The root admin cannot be demoted.")

    clash = check_user_uniqueness(
        tree,
        person_id=data["personId"],
        email=data["email"],
        phone=data["phone"],
        exclude_person_id=original_person_id,
    )
    if clash:
        return ActionResult.fail(clash.replace("A user with", "Another user with", 1))

    index = tree["users"].index(existing)
    tree["users"][index] = {
        **data,
        "joiningDate": existing.get("joiningDate", now_iso()),
        "role": role,
    }

    new_person_id = data["personId"]
    for item in tree["items"]:
        for sub_item in item.get("subItems") or []:
            snapshot = sub_item.get("assignedTo")
            if not snapshot or snapshot.get("personId") != original_person_id:
                continue
            snapshot["personId"] = new_person_id
            for field in _SNAPSHOT_FIELDS:
                snapshot[field] = data.get(field, UNSET)

    paths = ["/users", f"/users/{original_person_id}"]
    if new_person_id != original_person_id:
        paths.append(f"/users/{new_person_id}")
    store_service.save({"users": tree["users"], "items": tree["items"]}, invalidate=paths)
    if role != existing.get("role"):
        current_app.logger.info("Role of %s changed %s -> %s", new_person_id, existing.get("role"), role)
    return ActionResult.ok("User updated.")


@retry_on_conflict
def delete_user(person_id: str) -> ActionResult:
    """Remove the user and free every unit assigned to them."""
    tree = store_service.load()
    if find_user(tree, person_id) is None:
        return ActionResult.fail("User not found.")

    released = 0
    for item in tree["items"]:
        for sub_item in item.get("subItems") or []:
            if (sub_item.get("assignedTo") or {}).get("personId") == person_id:
                release_unit(sub_item)
                released += 1

    users = [u for u in tree["users"] if u.get("personId") != person_id]
    store_service.save({"users": users, "items": tree["items"]}, invalidate=("/users", "/"))
    current_app.logger.info("Deleted user %s, released %d unit(s)", person_id, released)
    return ActionResult.ok("User deleted.")


@retry_on_conflict
def create_root_user(payload: dict) -> ActionResult:
    """Bootstrap a role-A user directly (CLI only; no approval step)."""
    try:
        data = parse_new_user(payload)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    clash = check_user_uniqueness(
        tree, person_id=data["personId"], email=data["email"], phone=data["phone"]
    )
    if clash:
        return ActionResult.fail(clash)
    tree["users"].insert(0, build_user(data, role=ROOT_ROLE))
    store_service.save({"users": tree["users"]}, invalidate=("/users",))
    return ActionResult.ok(f"Root admin {data['name']} created.")


@retry_on_conflict
def change_role(person_id: str, role: str) -> ActionResult:
    tree = store_service.load()
    user = find_user(tree, person_id)
    if user is None:
        return ActionResult.fail("User not found.")
    if role not in ROLES:
        return ActionResult.fail(f"Role must be one of: {', '.join(ROLES)}.")
    if user.get("role") == ROOT_ROLE and role != ROOT_ROLE:
        return ActionResult.fail("The root admin cannot be demoted.")

    previous = user.get("role")
    user["role"] = role
    store_service.save({"users": tree["users"]}, invalidate=("/users", f"/users/{person_id}"))
    current_app.logger.info("Role of %s changed %s -> %s", person_id, previous, role)
    return ActionResult.ok(f"Role updated to {role}.")
