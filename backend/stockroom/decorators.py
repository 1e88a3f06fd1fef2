# Overview: Request, permission and passkey decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .services import permission_service, session_service, settings_service
from .services.permission_service import PermissionDeniedError


PASSKEY_HEADER = "X-Passkey"


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_auth(f):
    """
    Require a live session.

    Sets:
    - g.current_user: the user's directory record (dict)
    - g.session_context: the full SessionContext
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the current user's role to grant ``permission_code``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            try:
                permission_service.require_permission(
                    g.current_user, permission_code, resource=request.path
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_passkey(kind: str):
    """
    Require the ``X-Passkey`` header to match the stored ``kind`` passkey
    ("delete" for destructive routes, "auth" for role changes).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            attempt = request.headers.get(PASSKEY_HEADER)
            if not attempt:
                return jsonify({"error": "Passkey required"}), 403
            if not settings_service.verify_passkey(kind, attempt):
                return jsonify({"error": "Incorrect passkey"}), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
