# Overview: Flask API routes for change requests and the approval queue; parses input and returns JSON responses.

"""
Notification Routes

Requests (REQUEST_CHANGES):
- POST /api/notifications/allot          allot a unit to a person
- POST /api/notifications/status-change  unallot / discard / restore

Without ALLOT_TO_OTHERS a requester may only allot to themselves; their
own directory record is used as the assignee. Without UNALLOT_ANY only
units assigned to the requester may be returned.

Queue (VIEW_NOTIFICATIONS / HANDLE_NOTIFICATIONS):
- GET  /api/notifications?status=pending
- POST /api/notifications/<id>/approve
- POST /api/notifications/<id>/reject
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..responses import action_response, server_error
from ..services import inventory_service, notification_service, permission_service
from ..services.results import ActionResult


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _forbidden(message: str, permission_code: str):
    return jsonify({
        "error": "Permission denied",
        "required_permission": permission_code,
        "message": message,
    }), 403


@notifications_bp.get("")
@require_auth
@require_permission("VIEW_NOTIFICATIONS")
def list_notifications_route():
    status = request.args.get("status")
    if status and status not in notification_service.VALID_STATUSES:
        return jsonify({"error": f"Unknown status '{status}'"}), 400
    notifications = notification_service.list_notifications(status)
    return jsonify({"items": notifications, "count": len(notifications)})


@notifications_bp.post("/allot")
@require_auth
@require_permission("REQUEST_CHANGES")
def request_allotment_route():
    """
    Request body:
    {
        "itemId": "...",
        "subItemId": "000001",
        "assignment": {personId, name, email, phone, department?, section?,
                       assignmentDate?, project?}
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return action_response(ActionResult.fail("Invalid JSON payload"))
    assignment = data.get("assignment") or {}
    if not isinstance(assignment, dict):
        return action_response(ActionResult.fail("Assignment details must be an object."))
    assignment = dict(assignment)
    user = g.current_user

    if not permission_service.user_has_permission(user, "ALLOT_TO_OTHERS"):
        target = assignment.get("personId")
        if target and target != user.get("personId"):
            return _forbidden("You can only request allotment to yourself.", "ALLOT_TO_OTHERS")
        for field in ("personId", "name", "email", "phone", "department", "section"):
            if user.get(field) is not None:
                assignment[field] = user[field]

    try:
        result = notification_service.request_allotment(
            data.get("itemId"), data.get("subItemId"), assignment
        )
        return action_response(result, success_status=201)
    except Exception:
        current_app.logger.exception("Failed to submit allotment request")
        return server_error()


@notifications_bp.post("/status-change")
@require_auth
@require_permission("REQUEST_CHANGES")
def request_status_change_route():
    """Request body: {"itemId": "...", "subItemId": "...", "type": "unallot" | "discard" | "restore"}"""
    data = request.get_json(silent=True) or {}
    user = g.current_user
    type_ = data.get("type")

    if type_ == "unallot" and not permission_service.user_has_permission(user, "UNALLOT_ANY"):
        found = inventory_service.find_unit(data.get("subItemId") or "")
        holder = ((found or {}).get("subItem") or {}).get("assignedTo") or {}
        if found and holder.get("personId") != user.get("personId"):
            return _forbidden("You can only return units assigned to you.", "UNALLOT_ANY")

    try:
        result = notification_service.request_status_change(
            data.get("itemId"),
            data.get("subItemId"),
            type_,
            requester={"personId": user.get("personId"), "name": user.get("name")},
        )
        return action_response(result, success_status=201)
    except Exception:
        current_app.logger.exception("Failed to submit status change request")
        return server_error()


@notifications_bp.post("/<notification_id>/approve")
@require_auth
@require_permission("HANDLE_NOTIFICATIONS")
def approve_route(notification_id: str):
    try:
        return action_response(notification_service.handle_notification_action(notification_id, "approve"))
    except Exception:
        current_app.logger.exception("Failed to approve notification")
        return server_error()


@notifications_bp.post("/<notification_id>/reject")
@require_auth
@require_permission("HANDLE_NOTIFICATIONS")
def reject_route(notification_id: str):
    try:
        return action_response(notification_service.handle_notification_action(notification_id, "reject"))
    except Exception:
        current_app.logger.exception("Failed to reject notification")
        return server_error()
