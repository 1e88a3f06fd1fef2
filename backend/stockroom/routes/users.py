# Overview: Flask API routes for the user directory and self-registration; parses input and returns JSON responses.

"""
User Routes

- POST /api/register is public: it queues a registration request.
- Browsing requires VIEW_USERS (users may always read their own record).
- Editing requires MANAGE_USERS; role changes go through /role and need
  ASSIGN_ROLES plus the auth passkey.
- Deleting requires DELETE_RECORDS plus the delete passkey.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_passkey, require_permission
from ..responses import action_response, not_found, server_error
from ..services import permission_service, session_service, user_service


users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.post("/register")
def register_route():
    """
    Request body: {personId, name, email, phone, department?, section?}

    Creates a pending `register` notification; the user exists only once an
    admin approves it.
    """
    try:
        result = user_service.request_registration(request.get_json(silent=True) or {})
        return action_response(result, success_status=202)
    except Exception:
        current_app.logger.exception("Failed to submit registration")
        return server_error()


@users_bp.get("/users")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    users = user_service.list_users()
    return jsonify({"items": users, "count": len(users)})


@users_bp.get("/users/<person_id>")
@require_auth
def get_user_route(person_id: str):
    is_self = g.current_user.get("personId") == person_id
    if not is_self and not permission_service.user_has_permission(g.current_user, "VIEW_USERS"):
        return jsonify({"error": "Permission denied", "required_permission": "VIEW_USERS"}), 403
    user = user_service.get_user(person_id)
    if user is None:
        return not_found("User not found.")
    return jsonify(user)


@users_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """Admin add: bypasses approval; the user starts at the default role."""
    try:
        return action_response(user_service.add_user_as_admin(request.get_json(silent=True) or {}), success_status=201)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return server_error()


@users_bp.put("/users/<person_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(person_id: str):
    data = dict(request.get_json(silent=True) or {})
    # Roles only change through the passkey-confirmed /role route.
    data.pop("role", None)
    try:
        return action_response(user_service.update_user(person_id, data))
    except Exception:
        current_app.logger.exception("Failed to update user")
        return server_error()


@users_bp.put("/users/<person_id>/role")
@require_auth
@require_permission("ASSIGN_ROLES")
@require_passkey("auth")
def change_role_route(person_id: str):
    """Request body: {"role": "A" | "B" | "C" | "D"}"""
    data = request.get_json(silent=True) or {}
    try:
        return action_response(user_service.change_role(person_id, data.get("role")))
    except Exception:
        current_app.logger.exception("Failed to change user role")
        return server_error()


@users_bp.delete("/users/<person_id>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def delete_user_route(person_id: str):
    """Removes the user and returns all their units to Available."""
    try:
        result = user_service.delete_user(person_id)
        if result.success:
            session_service.revoke_all_user_sessions(person_id, reason="User deleted")
        return action_response(result)
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return server_error()
