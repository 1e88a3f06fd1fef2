from __future__ import annotations

import re
from typing import Any

from .services.store_service import UNSET
from .time_utils import now_iso, parse_iso_datetime


PASSKEY_RE = re.compile(r"^\d{6}$")
EMAIL_RE = re.compile(r"\S+@\S+\.\S+")

# Upper bound for a single add-units batch
MAX_BATCH_QUANTITY = 10_000


class ValidationError(ValueError):
    """400-level input problem."""


def require_text(payload: dict, key: str, label: str | None = None) -> str:
    value = payload.get(key) if isinstance(payload, dict) else None
    if value is None or not str(value).strip():
        raise ValidationError(f"{label or key} is required.")
    return str(value).strip()


def optional_text(payload: dict, key: str) -> Any:
    """Stripped string, or UNSET when missing/blank."""
    value = payload.get(key) if isinstance(payload, dict) else None
    if value is None:
        return UNSET
    value = str(value).strip()
    return value if value else UNSET


def parse_quantity(value: Any, label: str = "Quantity") -> int:
    """
    Strict positive integer: rejects bools, floats, decimals and
    scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not (stripped.isascii() and stripped.isdigit()):
            raise ValidationError(f"{label} must be a whole number.")
        qty = int(stripped)
    else:
        raise ValidationError(f"{label} must be a whole number.")
    if qty <= 0:
        raise ValidationError(f"{label} must be greater than zero.")
    if qty > MAX_BATCH_QUANTITY:
        raise ValidationError(f"{label} cannot exceed {MAX_BATCH_QUANTITY}.")
    return qty


def parse_amount(value: Any) -> Any:
    """Optional non-negative bill amount; UNSET when not given."""
    if value is None or value == "":
        return UNSET
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number.")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number.")
    if amount < 0:
        raise ValidationError("Amount cannot be negative.")
    return int(amount) if amount.is_integer() else amount


def parse_date(payload: dict, key: str, label: str) -> str:
    raw = require_text(payload, key, label)
    try:
        parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{label} must be an ISO-8601 date.")
    return raw


def is_valid_passkey(value: Any) -> bool:
    return isinstance(value, str) and bool(PASSKEY_RE.match(value))


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.search(value))


def parse_new_user(payload: dict) -> dict:
    """NewUserData: personId, name, email, phone, department?, section?"""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    email = require_text(payload, "email", "Email")
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address.")
    return {
        "personId": require_text(payload, "personId", "Person ID"),
        "name": require_text(payload, "name", "Name"),
        "email": email,
        "phone": require_text(payload, "phone", "Phone"),
        "department": optional_text(payload, "department"),
        "section": optional_text(payload, "section"),
    }


def parse_assignment(payload: dict) -> dict:
    """AssignmentDetails snapshot; assignmentDate defaults to now."""
    details = parse_new_user(payload)
    assignment_date = optional_text(payload, "assignmentDate")
    if assignment_date is UNSET:
        assignment_date = now_iso()
    else:
        try:
            parse_iso_datetime(assignment_date)
        except ValueError:
            raise ValidationError("Assignment date must be an ISO-8601 date.")
    details["assignmentDate"] = assignment_date
    details["project"] = optional_text(payload, "project")
    return details
