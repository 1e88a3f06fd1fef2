# Overview: Unit status state machine and the invariants it maintains.

"""
Unit Lifecycle Rules

STATE MACHINE (per unit):

    Available --allot-->   In Use
    In Use    --unallot--> Available
    Available --discard--> Discarded
    Discarded --restore--> Available

No other transition exists. Transitions are only applied when a pending
request is approved; deleting a unit, lot or item is a plain removal and
does not pass through here.

INVARIANTS:
- assignedTo is present  <=>  availabilityStatus == "In Use"
- discardedDate is present <=> availabilityStatus == "Discarded"
- item.totalQuantity == len(item.subItems)
"""

from __future__ import annotations

from typing import Literal

from ..time_utils import now_iso


STATUS_AVAILABLE = "Available"
STATUS_IN_USE = "In Use"
STATUS_DISCARDED = "Discarded"
VALID_STATUSES = {STATUS_AVAILABLE, STATUS_IN_USE, STATUS_DISCARDED}

TransitionKind = Literal["allot", "unallot", "discard", "restore"]

# kind -> (required source status, target status)
TRANSITIONS: dict[str, tuple[str, str]] = {
    "allot": (STATUS_AVAILABLE, STATUS_IN_USE),
    "unallot": (STATUS_IN_USE, STATUS_AVAILABLE),
    "discard": (STATUS_AVAILABLE, STATUS_DISCARDED),
    "restore": (STATUS_DISCARDED, STATUS_AVAILABLE),
}

_REJECTION_REASONS = {
    "allot": "Unit is no longer available. Current status: {status}.",
    "unallot": "Unit is not 'In Use'. Current status: {status}.",
    "discard": "Unit must be 'Available' to be discarded. Current status: {status}.",
    "restore": "Unit is not 'Discarded'. Current status: {status}.",
}


class TransitionError(ValueError):
    """
    Raised when a unit is not in the source state a transition needs.

    The message names the unit's actual status and is stored verbatim as a
    notification's rejection reason.
    """


def can_transition(kind: str, status: str) -> bool:
    rule = TRANSITIONS.get(kind)
    return rule is not None and rule[0] == status


def rejection_reason(kind: str, status: str) -> str:
    return _REJECTION_REASONS[kind].format(status=status)


def apply_transition(
    sub_item: dict,
    kind: TransitionKind,
    *,
    assignment: dict | None = None,
    at: str | None = None,
) -> dict:
    """
    Move ``sub_item`` along ``kind`` in place and return it.

    ``assignment`` is required for allot. ``at`` stamps discardedDate
    (defaults to now).

    Raises:
        TransitionError: unit not in the required source state
        ValueError: unknown kind, or allot without assignment
    """
    if kind not in TRANSITIONS:
        raise ValueError(f"Unknown transition '{kind}'")
    source, target = TRANSITIONS[kind]
    status = sub_item.get("availabilityStatus")
    if status != source:
        raise TransitionError(rejection_reason(kind, status))

    if kind == "allot":
        if not assignment:
            raise ValueError("allot requires assignment details")
        sub_item["assignedTo"] = dict(assignment)
        sub_item.pop("discardedDate", None)
    elif kind == "unallot":
        sub_item.pop("assignedTo", None)
    elif kind == "discard":
        sub_item["discardedDate"] = at or now_iso()
        sub_item.pop("assignedTo", None)
    elif kind == "restore":
        sub_item.pop("discardedDate", None)

    sub_item["availabilityStatus"] = target
    return sub_item


def release_unit(sub_item: dict) -> None:
    """Return an assigned unit to Available (used when its assignee is deleted)."""
    sub_item["availabilityStatus"] = STATUS_AVAILABLE
    sub_item.pop("assignedTo", None)


def recount(item: dict) -> dict:
    item["subItems"] = item.get("subItems") or []
    item["totalQuantity"] = len(item["subItems"])
    return item


def new_unit(unit_id: str, *, bill_number: str | None, lot_name: str | None) -> dict:
    unit = {"id": unit_id, "availabilityStatus": STATUS_AVAILABLE}
    if bill_number is not None:
        unit["billNumber"] = bill_number
    if lot_name is not None:
        unit["lotName"] = lot_name
    return unit


def unit_violations(item: dict) -> list[str]:
    """Invariant violations for one item (empty list when consistent)."""
    problems = []
    sub_items = item.get("subItems") or []
    if item.get("totalQuantity") != len(sub_items):
        problems.append(
            f"{item.get('id')}: totalQuantity {item.get('totalQuantity')} != {len(sub_items)} units"
        )
    for sub_item in sub_items:
        status = sub_item.get("availabilityStatus")
        label = f"{item.get('id')}/{sub_item.get('id')}"
        if status not in VALID_STATUSES:
            problems.append(f"{label}: unknown status {status!r}")
        if (status == STATUS_IN_USE) != ("assignedTo" in sub_item):
            problems.append(f"{label}: status {status} with assignedTo {'set' if 'assignedTo' in sub_item else 'missing'}")
        if (status == STATUS_DISCARDED) != ("discardedDate" in sub_item):
            problems.append(f"{label}: status {status} with discardedDate {'set' if 'discardedDate' in sub_item else 'missing'}")
    return problems
