# Overview: Service-layer operations for session tokens; encapsulates token issue, validation and revocation.

"""
Session Token Management Service

Users live in the inventory tree and are identified by personId; the
session row stores that id and the user record is re-read on every
validation. Removing a user from the directory ends their sessions.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from . import store_service
from .user_service import find_user, find_user_by_email
from ..extensions import db
from ..models import SessionToken
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    """Returned by validate_session; ``user`` is the current directory record."""
    user: dict
    session: SessionToken


class LoginError(ValueError):
    pass


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough for high-entropy tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def authenticate(person_id: str, email: str) -> dict:
    """
    Resolve the directory record for an identity asserted by the upstream
    provider. Raises LoginError when the pair does not match a user.
    """
    person_id = (person_id or "").strip()
    email = (email or "").strip()
    if not person_id or not email:
        raise LoginError("personId and email are required")

    tree = store_service.load()
    user = find_user(tree, person_id)
    if user is None or find_user_by_email(tree, email) is not user:
        current_app.logger.warning("Login rejected for person %s", person_id)
        raise LoginError("Invalid credentials")
    return user


def create_session(
    person_id: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for ``person_id``.

    Returns (session_record, plaintext_token). Only the hash is stored.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        person_id=person_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Return SessionContext if ``token`` is live, else None.

    Expired, idle, revoked and orphaned (user deleted) sessions are all
    None; idle and orphaned ones are revoked on the way out. Updates
    last_used_at on success.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    user = find_user(store_service.load(), session.person_id)
    if user is None:
        _revoke(session, "User removed")
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, reason)
    return True


def revoke_all_user_sessions(person_id: str, reason: str = "Revoke all sessions") -> int:
    """Used when a user is deleted."""
    now = utcnow()
    sessions = db.session.query(SessionToken).filter_by(
        person_id=person_id,
        is_revoked=False,
    ).all()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
    db.session.commit()
    return len(sessions)
