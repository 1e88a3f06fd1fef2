# Overview: Flask API routes for purchase bills; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_passkey, require_permission
from ..responses import action_response, not_found, server_error
from ..services import bill_service


bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_bills_route():
    bills = bill_service.list_bills()
    return jsonify({"items": bills, "count": len(bills)})


@bills_bp.get("/<bill_number>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_bill_route(bill_number: str):
    bill = bill_service.get_bill(bill_number)
    if bill is None:
        return not_found("Bill not found.")
    return jsonify(bill)


@bills_bp.post("")
@require_auth
@require_permission("MANAGE_BILLS")
def create_bill_route():
    """
    Request body:
    {
        "billNumber": "B100",
        "company": "Acme",
        "billDate": "2024-01-31",
        "amount": 1200,                     // optional
        "items": [
            {"id": "item-1", "quantity": 3},
            {"name": "Router", "quantity": 2, "isNew": true}
        ]
    }
    """
    try:
        return action_response(bill_service.add_bill(request.get_json(silent=True) or {}), success_status=201)
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return server_error()


@bills_bp.put("/<bill_number>")
@require_auth
@require_permission("MANAGE_BILLS")
def update_bill_route(bill_number: str):
    """Renaming billNumber cascades to every unit bought on the bill."""
    try:
        return action_response(bill_service.update_bill(bill_number, request.get_json(silent=True) or {}))
    except Exception:
        current_app.logger.exception("Failed to update bill")
        return server_error()


@bills_bp.delete("/<bill_number>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def delete_bill_route(bill_number: str):
    try:
        return action_response(bill_service.delete_bill(bill_number))
    except Exception:
        current_app.logger.exception("Failed to delete bill")
        return server_error()


@bills_bp.post("/<bill_number>/items")
@require_auth
@require_permission("MANAGE_BILLS")
def add_item_to_bill_route(bill_number: str):
    """Request body: {"itemId": "...", "quantity": 2}"""
    data = request.get_json(silent=True) or {}
    try:
        result = bill_service.add_item_to_bill(data.get("itemId"), bill_number, data.get("quantity"))
        return action_response(result, success_status=201)
    except Exception:
        current_app.logger.exception("Failed to add item to bill")
        return server_error()


@bills_bp.delete("/<bill_number>/items/<item_id>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def remove_item_from_bill_route(bill_number: str, item_id: str):
    try:
        return action_response(bill_service.remove_item_from_bill(item_id, bill_number))
    except Exception:
        current_app.logger.exception("Failed to remove item from bill")
        return server_error()
