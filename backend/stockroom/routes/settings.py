# Overview: Flask API routes for passkeys and the contact email; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..responses import action_response, server_error
from ..services import settings_service


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")

_KINDS = ("delete", "auth")


def _unknown_kind(kind: str):
    return jsonify({"error": f"Unknown passkey kind '{kind}'"}), 404


@settings_bp.get("/contact-email")
def get_contact_email_route():
    """Public: shown to users who need to reach an admin."""
    return jsonify({"contactEmail": settings_service.get_contact_email()})


@settings_bp.put("/contact-email")
@require_auth
@require_permission("MANAGE_SETTINGS")
def update_contact_email_route():
    data = request.get_json(silent=True) or {}
    try:
        return action_response(settings_service.update_contact_email(data.get("contactEmail")))
    except Exception:
        current_app.logger.exception("Failed to update contact email")
        return server_error()


@settings_bp.post("/passkeys/<kind>/verify")
@require_auth
def verify_passkey_route(kind: str):
    """Request body: {"passkey": "123456"} -> {"valid": bool}"""
    if kind not in _KINDS:
        return _unknown_kind(kind)
    data = request.get_json(silent=True) or {}
    return jsonify({"valid": settings_service.verify_passkey(kind, data.get("passkey"))})


@settings_bp.put("/passkeys/<kind>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def update_passkey_route(kind: str):
    """Request body: {"current": "801711", "new": "123456"}"""
    if kind not in _KINDS:
        return _unknown_kind(kind)
    data = request.get_json(silent=True) or {}
    try:
        return action_response(settings_service.update_passkey(kind, data.get("current"), data.get("new")))
    except Exception:
        current_app.logger.exception("Failed to update passkey")
        return server_error()
