# Overview: Service-layer operations for the secure settings record (passkeys, contact email).

from __future__ import annotations

import hmac
from typing import Literal

from flask import current_app

from . import store_service
from .concurrency import retry_on_conflict
from .results import ActionResult
from ..validation import is_valid_email, is_valid_passkey


PasskeyKind = Literal["delete", "auth"]

_PASSKEY_FIELDS = {
    "delete": "deletePasskey",
    "auth": "authPasskey",
}


class SettingsError(ValueError):
    pass


def _field(kind: str) -> str:
    try:
        return _PASSKEY_FIELDS[kind]
    except KeyError:
        raise SettingsError(f"Unknown passkey kind '{kind}'") from None


def verify_passkey(kind: PasskeyKind, attempt) -> bool:
    """Constant-time comparison of ``attempt`` against the stored passkey."""
    stored = store_service.load()["secure"].get(_field(kind))
    if not stored or attempt is None:
        return False
    return hmac.compare_digest(str(stored), str(attempt))


@retry_on_conflict
def update_passkey(kind: PasskeyKind, current, new) -> ActionResult:
    field = _field(kind)
    tree = store_service.load()
    secure = tree["secure"]
    if current is None or not hmac.compare_digest(str(secure.get(field) or ""), str(current)):
        current_app.logger.warning("Rejected %s passkey change: current passkey mismatch", kind)
        return ActionResult.fail(f"The current {kind} passkey is incorrect.")
    if not is_valid_passkey(new):
        return ActionResult.fail("New passkey must be a 6-digit number.")

    secure[field] = str(new)
    store_service.save({"secure": secure})
    current_app.logger.info("Updated %s passkey", kind)
    return ActionResult.ok(f"The {kind} passkey has been updated.")


def get_contact_email() -> str:
    return store_service.load()["secure"].get("contactEmail") or current_app.config["DEFAULT_CONTACT_EMAIL"]


@retry_on_conflict
def update_contact_email(email) -> ActionResult:
    if not is_valid_email(email):
        return ActionResult.fail("Please provide a valid email address.")
    tree = store_service.load()
    secure = tree["secure"]
    secure["contactEmail"] = str(email).strip()
    store_service.save({"secure": secure})
    return ActionResult.ok("Contact email updated.")
