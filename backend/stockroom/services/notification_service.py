# Overview: Request/approve workflow for unit state changes and registrations.

"""
Notification Workflow

WHY: Unit state changes (allot, unallot, discard, restore) and new-user
registrations are requested by one person and applied only when another
person with HANDLE_NOTIFICATIONS approves them.

LIFECYCLE:
    pending --approve--> approved   (effects applied)
    pending --approve--> rejected   (target vanished or moved; reason recorded)
    pending --reject---> rejected   (no effects, no reason)

A notification leaves `pending` exactly once. Acting on one that is already
approved/rejected removes it from the list and reports "already handled";
its effects are never applied twice.

REVALIDATION:
Requests can sit for days. Approval re-resolves the item and unit by id and
checks the unit's *current* status against the lifecycle table. The
snapshot stored on the request is used for display and for the assignment
it carries, never as proof of the unit's state.
"""

from __future__ import annotations

from typing import Literal

from flask import current_app

from . import store_service
from .concurrency import retry_on_conflict
from .identifier_service import new_notification_id
from .inventory_service import find_item, find_sub_item
from .lifecycle_service import TransitionError, apply_transition
from .results import ActionResult
from .uniqueness_service import check_user_uniqueness
from .user_service import DEFAULT_ROLE, FIRST_USER_ROLE, build_user
from ..time_utils import now_iso
from ..validation import ValidationError, parse_assignment


STATUS_CHANGE_TYPES = {"unallot", "discard", "restore"}

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
VALID_STATUSES = {STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED}

NotificationAction = Literal["approve", "reject"]
_ACTION_STATUS = {"approve": STATUS_APPROVED, "reject": STATUS_REJECTED}

_NOTIFICATION_PATHS = ("/notifications",)


# =============================================================================
# QUERIES
# =============================================================================

def list_notifications(status: str | None = None) -> list[dict]:
    notifications = store_service.load()["notifications"]
    if status:
        notifications = [n for n in notifications if n.get("status") == status]
    return notifications


def get_notification(notification_id: str) -> dict | None:
    for n in store_service.load()["notifications"]:
        if n.get("id") == notification_id:
            return n
    return None


# =============================================================================
# REQUEST CREATION
# =============================================================================

def create_notification(
    tree: dict,
    type_: str,
    item: dict,
    sub_item_id: str,
    requested_data: dict | None = None,
) -> ActionResult:
    """Prepend a pending request for ``item``/``sub_item_id`` and persist the tree."""
    notification = {
        "id": new_notification_id(tree["notifications"]),
        "type": type_,
        "status": STATUS_PENDING,
        "createdAt": now_iso(),
        "itemId": item.get("id"),
        "subItemId": sub_item_id,
        "itemName": item.get("name"),
        "requestedData": requested_data or {},
    }
    tree["notifications"].insert(0, notification)
    store_service.save({"notifications": tree["notifications"]}, invalidate=_NOTIFICATION_PATHS)
    current_app.logger.info(
        "Queued %s request %s for unit %s", type_, notification["id"], sub_item_id
    )
    return ActionResult.ok(
        f"Request to {type_} unit has been submitted for approval.",
        data={"id": notification["id"]},
    )


@retry_on_conflict
def request_allotment(item_id: str, sub_item_id: str, assignment_details: dict) -> ActionResult:
    """
    Ask for ``sub_item_id`` to be allotted to the person in
    ``assignment_details``. The item (and unit) must exist now; approval
    checks again.
    """
    try:
        assignment = parse_assignment(assignment_details)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")
    if find_sub_item(item, sub_item_id) is None:
        return ActionResult.fail("Unit not found.")
    clash = _new_assignee_clash(tree, assignment)
    if clash:
        return ActionResult.fail(clash)

    return create_notification(tree, "allot", item, sub_item_id, {"assignmentDetails": assignment})


@retry_on_conflict
def request_status_change(
    item_id: str,
    sub_item_id: str,
    type_: str,
    requester: dict | None = None,
) -> ActionResult:
    """
    Ask for an unallot, discard or restore.

    For unallot the unit's current assignment is copied into the request so
    reviewers see who held it when the request was made. ``requester``
    ({personId, name}) is kept for audit display.
    """
    if type_ not in STATUS_CHANGE_TYPES:
        return ActionResult.fail(f"Unsupported request type '{type_}'.")

    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")
    sub_item = find_sub_item(item, sub_item_id)
    if sub_item is None:
        return ActionResult.fail("Unit not found.")

    requested_data: dict = {}
    if requester:
        requested_data["requester"] = {
            "personId": requester.get("personId"),
            "name": requester.get("name"),
        }
    if type_ == "unallot" and sub_item.get("assignedTo"):
        requested_data["assignmentDetails"] = dict(sub_item["assignedTo"])

    return create_notification(tree, type_, item, sub_item_id, requested_data)


# =============================================================================
# APPROVAL / REJECTION
# =============================================================================

def _approve_registration(tree: dict, notification: dict) -> str | None:
    """Apply a register approval. Returns a rejection reason or None."""
    new_user = (notification.get("requestedData") or {}).get("newUser")
    if not new_user:
        return "User data is missing from the request."

    clash = check_user_uniqueness(
        tree,
        person_id=new_user.get("personId"),
        email=new_user.get("email"),
        phone=new_user.get("phone"),
        include_pending=False,
    )
    if clash:
        return clash

    # The very first approved registrant bootstraps one level above default.
    role = FIRST_USER_ROLE if not tree["users"] else DEFAULT_ROLE
    tree["users"].insert(0, build_user(new_user, role=role))
    return None


def _new_assignee_clash(tree: dict, assignment: dict) -> str | None:
    """An assignee who is not yet a user must not reuse another user's email or phone."""
    if any(u.get("personId") == assignment.get("personId") for u in tree["users"]):
        return None
    return check_user_uniqueness(
        tree,
        person_id=assignment.get("personId"),
        email=assignment.get("email"),
        phone=assignment.get("phone"),
        include_pending=False,
    )


def _approve_unit_change(tree: dict, notification: dict) -> str | None:
    """Apply an allot/unallot/discard/restore approval. Returns a rejection reason or None."""
    item = find_item(tree, notification.get("itemId"))
    if item is None:
        return f"Item with ID {notification.get('itemId')} no longer exists."
    sub_item = find_sub_item(item, notification.get("subItemId"))
    if sub_item is None:
        return f"Sub-item with ID {notification.get('subItemId')} no longer exists."

    kind = notification.get("type")
    assignment = None
    if kind == "allot":
        assignment = (notification.get("requestedData") or {}).get("assignmentDetails")
        if not assignment:
            return "Assignment details are missing from the request."
        clash = _new_assignee_clash(tree, assignment)
        if clash:
            return clash

    try:
        apply_transition(sub_item, kind, assignment=assignment)
    except TransitionError as e:
        return str(e)

    if kind == "allot" and not any(u.get("personId") == assignment.get("personId") for u in tree["users"]):
        tree["users"].insert(0, build_user(assignment, role=DEFAULT_ROLE))
    return None


@retry_on_conflict
def handle_notification_action(notification_id: str, action: NotificationAction) -> ActionResult:
    """
    Approve or reject a pending request.

    1. Unknown id -> failure.
    2. Already approved/rejected -> drop it from the list, persist, failure
       ("already handled"). Effects are not re-applied.
    3. Otherwise stamp status and handledAt; on approve apply the effect,
       flipping to rejected with a reason if the target no longer permits it.
    4. Persist the whole tree.
    """
    if action not in _ACTION_STATUS:
        return ActionResult.fail(f"Unsupported action '{action}'.")

    tree = store_service.load()
    index = next(
        (i for i, n in enumerate(tree["notifications"]) if n.get("id") == notification_id),
        None,
    )
    if index is None:
        return ActionResult.fail("Notification not found.")

    notification = tree["notifications"][index]
    if notification.get("status") != STATUS_PENDING:
        del tree["notifications"][index]
        store_service.save({"notifications": tree["notifications"]}, invalidate=_NOTIFICATION_PATHS)
        current_app.logger.info(
            "Discarded stale notification %s (status %s)", notification_id, notification.get("status")
        )
        return ActionResult.fail("This request has already been handled.")

    notification["status"] = _ACTION_STATUS[action]
    notification["handledAt"] = now_iso()

    reason = None
    if action == "approve":
        if notification.get("type") == "register":
            reason = _approve_registration(tree, notification)
        else:
            reason = _approve_unit_change(tree, notification)
        if reason:
            notification["status"] = STATUS_REJECTED
            notification["rejectionReason"] = reason

    paths = ["/notifications", "/users"]
    if notification.get("itemId"):
        paths.append(f"/item/{notification['itemId']}")
    store_service.save(
        {
            "notifications": tree["notifications"],
            "items": tree["items"],
            "users": tree["users"],
        },
        invalidate=paths,
    )

    if reason:
        current_app.logger.info("Notification %s auto-rejected: %s", notification_id, reason)
        return ActionResult.ok(f"Request has been rejected: {reason}", data={"status": STATUS_REJECTED})

    current_app.logger.info("Notification %s %s", notification_id, notification["status"])
    return ActionResult.ok(
        f"Request has been {notification['status']}.",
        data={"status": notification["status"]},
    )
