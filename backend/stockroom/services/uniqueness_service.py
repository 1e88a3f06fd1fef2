# Overview: Uniqueness checks for users, pending registrations and bills.

"""
Uniqueness Validators

A person is identified three ways: personId, email and phone. Each must be
unique across committed users AND the payloads of pending registration
requests, so two people cannot both queue a registration for the same
identity before either is approved.

- personId, email: case-insensitive
- phone: exact match
- billNumber: exact match, committed bills only
"""

from __future__ import annotations


def _fold(value) -> str:
    return str(value or "").strip().lower()


def _pending_registrations(tree: dict) -> list[dict]:
    out = []
    for n in tree["notifications"]:
        if n.get("type") != "register" or n.get("status") != "pending":
            continue
        new_user = (n.get("requestedData") or {}).get("newUser")
        if new_user:
            out.append(new_user)
    return out


def check_user_uniqueness(
    tree: dict,
    *,
    person_id: str,
    email: str,
    phone: str,
    exclude_person_id: str | None = None,
    include_pending: bool = True,
) -> str | None:
    """
    First collision message, or None when the identity is free.

    ``exclude_person_id`` skips the user being edited.
    """
    others = [u for u in tree["users"] if u.get("personId") != exclude_person_id]

    if any(_fold(u.get("personId")) == _fold(person_id) for u in others):
        return f'A user with ID "{person_id}" already exists.'
    if any(_fold(u.get("email")) == _fold(email) for u in others):
        return f'A user with email "{email}" already exists.'
    if any(u.get("phone") == phone for u in others):
        return f'A user with phone number "{phone}" already exists.'

    if not include_pending:
        return None

    pending = _pending_registrations(tree)
    if exclude_person_id is not None:
        pending = [p for p in pending if _fold(p.get("personId")) != _fold(exclude_person_id)]

    if any(_fold(p.get("personId")) == _fold(person_id) for p in pending):
        return f'A registration request for user ID "{person_id}" already exists.'
    if any(_fold(p.get("email")) == _fold(email) for p in pending):
        return f'A registration request for email "{email}" already exists.'
    if any(p.get("phone") == phone for p in pending):
        return f'A registration request for phone number "{phone}" already exists.'
    return None


def check_bill_uniqueness(tree: dict, bill_number: str, *, exclude: str | None = None) -> str | None:
    for bill in tree["bills"]:
        number = bill.get("billNumber")
        if number == bill_number and number != exclude:
            return f'Bill with number "{bill_number}" already exists.'
    return None
