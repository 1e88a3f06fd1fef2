# Overview: Flask API routes for items, units and lots; parses input and returns JSON responses.

"""
Inventory Routes

SECURITY: All routes require authentication.
- Browsing requires VIEW_INVENTORY; the unit scan lookup only SCAN_UNITS
- Create/update and adding units require MANAGE_ITEMS
- Deletes require DELETE_RECORDS and the delete passkey (X-Passkey)
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_passkey, require_permission
from ..responses import action_response, not_found, server_error
from ..services import inventory_service, permission_service, store_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


def _redact_scan(found: dict) -> dict:
    """Hide another person's assignment from users who cannot browse inventory."""
    user = g.current_user
    if permission_service.user_has_permission(user, "VIEW_INVENTORY"):
        return found
    sub_item = dict(found["subItem"])
    holder = (sub_item.get("assignedTo") or {}).get("personId")
    if holder and holder != user.get("personId"):
        sub_item.pop("assignedTo", None)
    return {**found, "subItem": sub_item}


@inventory_bp.get("/inventory")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_inventory_route():
    """Whole public tree (no secure settings). ETag is the document version."""
    tree = store_service.load()
    response = jsonify(store_service.public_view(tree))
    response.set_etag(str(store_service.current_version()))
    return response.make_conditional(request)


@inventory_bp.get("/inventory/summary")
@require_auth
@require_permission("VIEW_INVENTORY")
def inventory_summary_route():
    return jsonify(inventory_service.get_inventory_summary())


@inventory_bp.get("/items")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_items_route():
    items = inventory_service.list_items()
    return jsonify({"items": items, "count": len(items)})


@inventory_bp.get("/items/<item_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_item_route(item_id: str):
    item = inventory_service.get_item(item_id)
    if item is None:
        return not_found("Item not found.")
    return jsonify(item)


@inventory_bp.post("/items")
@require_auth
@require_permission("MANAGE_ITEMS")
def create_item_route():
    """
    Request body:
    {
        "name": "Laptop",       // required, unique (case-insensitive)
        "description": "..."    // optional
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        result = inventory_service.add_item(data.get("name"), data.get("description"))
        return action_response(result, success_status=201)
    except Exception:
        current_app.logger.exception("Failed to create item")
        return server_error()


@inventory_bp.put("/items/<item_id>")
@require_auth
@require_permission("MANAGE_ITEMS")
def update_item_route(item_id: str):
    data = request.get_json(silent=True) or {}
    try:
        result = inventory_service.update_item(
            item_id,
            name=data.get("name"),
            description=data.get("description"),
        )
        return action_response(result)
    except Exception:
        current_app.logger.exception("Failed to update item")
        return server_error()


@inventory_bp.delete("/items/<item_id>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def delete_item_route(item_id: str):
    try:
        return action_response(inventory_service.delete_item(item_id))
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return server_error()


@inventory_bp.post("/items/<item_id>/units")
@require_auth
@require_permission("MANAGE_ITEMS")
def add_units_route(item_id: str):
    """
    Request body:
    {
        "quantity": 5,
        "billNumber": "B100",
        "billDate": "2024-01-31",
        "company": "Acme",
        "lotName": "L1",
        "amount": 1200          // optional
    }

    Returns the new unit ids in data.ids.
    """
    data = request.get_json(silent=True) or {}
    try:
        result = inventory_service.add_units(
            item_id,
            quantity=data.get("quantity"),
            bill_number=data.get("billNumber"),
            bill_date=data.get("billDate"),
            company=data.get("company"),
            lot_name=data.get("lotName"),
            amount=data.get("amount"),
        )
        return action_response(result, success_status=201)
    except Exception:
        current_app.logger.exception("Failed to add units")
        return server_error()


@inventory_bp.delete("/items/<item_id>/units/<sub_item_id>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def delete_unit_route(item_id: str, sub_item_id: str):
    try:
        return action_response(inventory_service.delete_sub_item(item_id, sub_item_id))
    except Exception:
        current_app.logger.exception("Failed to delete unit")
        return server_error()


@inventory_bp.delete("/items/<item_id>/lots/<lot_name>")
@require_auth
@require_permission("DELETE_RECORDS")
@require_passkey("delete")
def delete_lot_route(item_id: str, lot_name: str):
    try:
        return action_response(inventory_service.delete_lot(item_id, lot_name))
    except Exception:
        current_app.logger.exception("Failed to delete lot")
        return server_error()


@inventory_bp.get("/units/<sub_item_id>")
@require_auth
@require_permission("SCAN_UNITS")
def scan_unit_route(sub_item_id: str):
    """Scanner lookup by unit id (the QR payload)."""
    found = inventory_service.find_unit(sub_item_id)
    if found is None:
        return not_found("Unit not found.")
    return jsonify(_redact_scan(found))
