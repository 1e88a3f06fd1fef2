# Overview: Service-layer operations for purchase bills on the inventory tree.

"""
Purchase Bills

A bill is keyed by billNumber. Units carry the billNumber they arrived on
(and usually a lotName equal to it), so renaming or deleting a bill cascades
to every unit that references it.
"""

from __future__ import annotations

from flask import current_app

from . import store_service
from .concurrency import retry_on_conflict
from .identifier_service import new_item_id
from .inventory_service import add_units_to, find_item
from .lifecycle_service import recount
from .results import ActionResult
from .uniqueness_service import check_bill_uniqueness
from ..validation import (
    ValidationError,
    parse_amount,
    parse_date,
    parse_quantity,
    require_text,
)


def _parse_bill(payload: dict) -> dict:
    return {
        "billNumber": require_text(payload, "billNumber", "Bill number"),
        "company": require_text(payload, "company", "Company"),
        "billDate": parse_date(payload, "billDate", "Bill date"),
        "amount": parse_amount(payload.get("amount")),
    }


def list_bills() -> list[dict]:
    return store_service.load()["bills"]


def get_bill(bill_number: str) -> dict | None:
    """Bill plus the units that reference it, grouped by item."""
    tree = store_service.load()
    bill = next((b for b in tree["bills"] if b.get("billNumber") == bill_number), None)
    if bill is None:
        return None
    lines = []
    for item in tree["items"]:
        units = [si for si in item.get("subItems") or [] if si.get("billNumber") == bill_number]
        if units:
            lines.append({"itemId": item.get("id"), "itemName": item.get("name"), "subItems": units})
    return {**bill, "items": lines}


@retry_on_conflict
def add_bill(payload: dict) -> ActionResult:
    """
    Create a bill and the units bought on it.

    payload: billNumber, company, billDate, amount?, items=[{id, name,
    quantity, isNew}]. Items flagged isNew that do not exist yet are
    created. Units get lotName = billNumber.
    """
    try:
        bill = _parse_bill(payload or {})
        raw_lines = (payload or {}).get("items") or []
        if not isinstance(raw_lines, list):
            raise ValidationError("Bill items must be a list.")
        lines = []
        for line in raw_lines:
            if not isinstance(line, dict):
                raise ValidationError("Each bill item must be an object.")
            lines.append({
                "id": str(line.get("id") or "").strip(),
                "name": str(line.get("name") or "").strip(),
                "quantity": parse_quantity(line.get("quantity")),
                "isNew": bool(line.get("isNew")),
            })
            if not lines[-1]["id"] and not lines[-1]["isNew"]:
                raise ValidationError("Item ID is required.")
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    clash = check_bill_uniqueness(tree, bill["billNumber"])
    if clash:
        return ActionResult.fail(clash)

    tree["bills"].insert(0, bill)

    touched = []
    for line in lines:
        item = find_item(tree, line["id"]) if line["id"] else None
        if item is None and line["isNew"]:
            if not line["name"]:
                return ActionResult.fail("New items need a name.")
            item = {
                "id": line["id"] or new_item_id(tree["items"]),
                "name": line["name"],
                "description": f"Added with bill {bill['billNumber']}",
                "subItems": [],
                "totalQuantity": 0,
            }
            tree["items"].insert(0, item)
        if item is None:
            continue
        add_units_to(tree, item, line["quantity"], bill_number=bill["billNumber"], lot_name=bill["billNumber"])
        touched.append(item["id"])

    store_service.save(
        {"items": tree["items"], "bills": tree["bills"]},
        invalidate=["/bills", "/"] + [f"/item/{i}" for i in touched],
    )
    current_app.logger.info("Added bill %s covering %d item(s)", bill["billNumber"], len(touched))
    return ActionResult.ok(f'Bill "{bill["billNumber"]}" added.')


@retry_on_conflict
def update_bill(original_bill_number: str, payload: dict) -> ActionResult:
    try:
        updated = _parse_bill(payload or {})
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    index = next(
        (i for i, b in enumerate(tree["bills"]) if b.get("billNumber") == original_bill_number),
        None,
    )
    if index is None:
        return ActionResult.fail("Bill not found.")

    new_number = updated["billNumber"]
    if new_number != original_bill_number:
        clash = check_bill_uniqueness(tree, new_number)
        if clash:
            return ActionResult.fail(f'A bill with number "{new_number}" already exists.')

    tree["bills"][index] = updated

    if new_number != original_bill_number:
        for item in tree["items"]:
            for sub_item in item.get("subItems") or []:
                if sub_item.get("billNumber") == original_bill_number:
                    sub_item["billNumber"] = new_number
                if sub_item.get("lotName") == original_bill_number:
                    sub_item["lotName"] = new_number

    store_service.save(
        {"items": tree["items"], "bills": tree["bills"]},
        invalidate=("/bills", f"/bills/{original_bill_number}", f"/bills/{new_number}"),
    )
    return ActionResult.ok("Bill updated.")


@retry_on_conflict
def delete_bill(bill_number: str) -> ActionResult:
    """Remove the bill and every unit bought on it."""
    tree = store_service.load()
    bills = [b for b in tree["bills"] if b.get("billNumber") != bill_number]
    if len(bills) == len(tree["bills"]):
        return ActionResult.fail("Bill not found.")

    removed = 0
    paths = ["/bills", "/"]
    for item in tree["items"]:
        before = len(item.get("subItems") or [])
        item["subItems"] = [si for si in item.get("subItems") or [] if si.get("billNumber") != bill_number]
        recount(item)
        if item["totalQuantity"] != before:
            removed += before - item["totalQuantity"]
            paths.append(f"/item/{item['id']}")

    store_service.save({"items": tree["items"], "bills": bills}, invalidate=paths)
    current_app.logger.info("Deleted bill %s and %d unit(s)", bill_number, removed)
    return ActionResult.ok(f'Bill "{bill_number}" deleted.')


@retry_on_conflict
def add_item_to_bill(item_id: str, bill_number: str, quantity) -> ActionResult:
    try:
        quantity = parse_quantity(quantity)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    if not any(b.get("billNumber") == bill_number for b in tree["bills"]):
        return ActionResult.fail("Bill not found.")
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")

    ids = add_units_to(tree, item, quantity, bill_number=bill_number, lot_name=bill_number)
    store_service.save({"items": tree["items"]}, invalidate=(f"/bills/{bill_number}", f"/item/{item_id}"))
    return ActionResult.ok(f"{quantity} unit(s) added to bill.", data={"ids": ids})


@retry_on_conflict
def remove_item_from_bill(item_id: str, bill_number: str) -> ActionResult:
    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")
    item["subItems"] = [si for si in item["subItems"] if si.get("billNumber") != bill_number]
    recount(item)
    store_service.save({"items": tree["items"]}, invalidate=(f"/bills/{bill_number}", f"/item/{item_id}"))
    return ActionResult.ok("Item removed from bill.")
