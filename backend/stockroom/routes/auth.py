# Overview: Flask API routes for session login/logout; parses input and returns JSON responses.

"""
Authentication routes

Identity is asserted upstream (personId + email from the identity
provider). Login matches that pair against the user directory and issues a
session token; only its SHA-256 hash is stored.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..services import permission_service, session_service
from ..services.session_service import LoginError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Request body: {"personId": "...", "email": "..."}

    Returns user, permissions and the bearer token.
    """
    try:
        data = request.get_json(silent=True) or {}
        person_id = data.get("personId")
        email = data.get("email")
        if not all([person_id, email]):
            return jsonify({"error": "personId and email required"}), 400

        try:
            user = session_service.authenticate(person_id, email)
        except LoginError as e:
            return jsonify({"error": str(e)}), 401

        session, token = session_service.create_session(
            person_id=user["personId"],
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Session opened for %s", user["personId"])
        return jsonify({
            "user": user,
            "permissions": sorted(permission_service.get_user_permissions(user)),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401
        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user record plus role capabilities, for UI gating."""
    user = g.current_user
    return jsonify({
        "user": user,
        "permissions": sorted(permission_service.get_user_permissions(user)),
    })
