# Overview: Retry helpers for read-modify-write actions on the inventory tree.

from __future__ import annotations

import time
from functools import wraps

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a whole read-modify-write with retry on concurrency failures.

    Retries on OperationalError (locks) and StaleDataError (the tree was
    written by someone else after our read). Each retry re-runs ``func``
    from the top, so it reloads the tree.
    """
    if attempts is None:
        attempts = current_app.config.get("STORE_WRITE_ATTEMPTS", 3)
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            current_app.logger.warning(
                "Inventory write conflict (attempt %d/%d): %s", attempt + 1, attempts, exc
            )
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def retry_on_conflict(func):
    """Decorator form of run_with_retry for service actions."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        return run_with_retry(lambda: func(*args, **kwargs))
    return wrapper
