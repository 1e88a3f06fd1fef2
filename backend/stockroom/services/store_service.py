# Overview: Service-layer access to the inventory tree; the only code that reads or writes InventoryDocument.

"""
Record Store Access

The inventory is a single JSON tree::

    {
        "items": [...], "bills": [...], "users": [...],
        "notifications": [...], "secure": {...}
    }

Every action does load() -> mutate in memory -> save(). Two concerns are
handled here and nowhere else:

- Dense collections: the tree may hold a collection as a list with null
  holes or as an object keyed by index ("0", "1", ...). load() always hands
  back dense, ordered lists.
- Absent vs null: a field that should not exist is set to UNSET (or popped).
  save() strips UNSET recursively; None is written as JSON null.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import InventoryDocument
from ..signals import paths_invalidated, tree_saved
from ..time_utils import utcnow


COLLECTIONS = ("items", "bills", "users", "notifications")
SECURE_KEYS = ("deletePasskey", "authPasskey", "contactEmail")


class _Unset:
    """Marker for "field absent"; never persisted."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


def strip_unset(value: Any) -> Any:
    """Recursively drop UNSET dict values and list entries."""
    if isinstance(value, dict):
        return {k: strip_unset(v) for k, v in value.items() if v is not UNSET}
    if isinstance(value, (list, tuple)):
        return [strip_unset(v) for v in value if v is not UNSET]
    return value


def _index_key(key: Any):
    try:
        return (0, int(key), "")
    except (TypeError, ValueError):
        return (1, 0, str(key))


def to_dense_list(value: Any) -> list:
    """
    Normalize a stored collection into a dense list.

    None -> [], list -> list without None holes, dict keyed by index ->
    values ordered by numeric key.
    """
    if not value:
        return []
    if isinstance(value, list):
        return [v for v in value if v is not None]
    if isinstance(value, dict):
        return [value[k] for k in sorted(value.keys(), key=_index_key) if value[k] is not None]
    return []


def secure_defaults() -> dict:
    return {
        "deletePasskey": current_app.config["DEFAULT_DELETE_PASSKEY"],
        "authPasskey": current_app.config["DEFAULT_AUTH_PASSKEY"],
        "contactEmail": current_app.config["DEFAULT_CONTACT_EMAIL"],
    }


# db.session.info key holding the document version the last load() returned.
_LOADED_VERSION = "inventory_loaded_version"


def empty_tree() -> dict:
    return {name: [] for name in COLLECTIONS}


def _get_document(*, refresh: bool = False) -> InventoryDocument | None:
    query = db.session.query(InventoryDocument).order_by(InventoryDocument.id.asc())
    if refresh:
        # Only load() refreshes; save() checks the version load() recorded.
        query = query.populate_existing()
    return query.first()


def _normalize(raw: dict) -> dict:
    tree = {name: to_dense_list(raw.get(name)) for name in COLLECTIONS}
    for item in tree["items"]:
        item["subItems"] = to_dense_list(item.get("subItems"))
    secure = raw.get("secure")
    tree["secure"] = dict(secure) if isinstance(secure, dict) else {}
    return tree


def load() -> dict:
    """
    Return a private, normalized copy of the whole tree.

    Creates the document on first use. Missing secure settings are filled
    with the configured defaults and persisted before returning.
    """
    doc = _get_document(refresh=True)
    if doc is None:
        doc = InventoryDocument(tree=empty_tree(), updated_at=utcnow())
        db.session.add(doc)
        db.session.commit()
        current_app.logger.info("Created empty inventory document")

    stored_secure = (doc.tree or {}).get("secure")
    if not isinstance(stored_secure, dict):
        stored_secure = {}
    missing = {k: v for k, v in secure_defaults().items() if k not in stored_secure}
    if missing:
        stored = copy.deepcopy(doc.tree or {})
        stored["secure"] = {**stored_secure, **missing}
        doc.tree = stored
        doc.updated_at = utcnow()
        db.session.commit()
        current_app.logger.info("Seeded secure settings: %s", ", ".join(sorted(missing)))

    db.session.info[_LOADED_VERSION] = doc.version
    return _normalize(copy.deepcopy(doc.tree or {}))


def save(partial: dict, *, invalidate: Iterable[str] = ()) -> int:
    """
    Write the given top-level subtrees, replacing what is stored.

    Returns the new document version. Raises StaleDataError when another
    writer committed since this document was read.
    """
    expected = db.session.info.get(_LOADED_VERSION)
    doc = _get_document()
    if doc is None:
        doc = InventoryDocument(tree=empty_tree())
        db.session.add(doc)
    elif expected is not None and doc.version != expected:
        db.session.rollback()
        raise StaleDataError(
            f"inventory document is at version {doc.version}, expected {expected}"
        )

    stored = copy.deepcopy(doc.tree or {})
    for key, value in partial.items():
        if value is UNSET:
            stored.pop(key, None)
        else:
            stored[key] = strip_unset(value)

    doc.tree = stored
    doc.updated_at = utcnow()
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    version = doc.version
    db.session.info[_LOADED_VERSION] = version
    tree_saved.send(current_app._get_current_object(), version=version)
    paths = list(dict.fromkeys(p for p in invalidate if p))
    if paths:
        paths_invalidated.send(current_app._get_current_object(), paths=paths)
    return version


def current_version() -> int | None:
    doc = _get_document(refresh=True)
    return doc.version if doc else None


def public_view(tree: dict) -> dict:
    """Tree without the secure settings record."""
    return {name: tree.get(name, []) for name in COLLECTIONS}
