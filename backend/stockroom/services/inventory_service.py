# Overview: Service-layer operations for items, units and lots on the inventory tree.

"""
Items, units and lots.

Units are created in batches against a bill: every unit in the batch gets
the batch's billNumber and lotName and starts Available. The bill record is
created or updated in the same save, so units never reference a bill that
was not written.

Deleting an item, a unit or a whole lot is immediate and unconditional.
"""

from __future__ import annotations

from flask import current_app

from . import store_service
from .concurrency import retry_on_conflict
from .identifier_service import allocate_sub_item_ids, new_item_id
from .lifecycle_service import (
    STATUS_AVAILABLE,
    STATUS_DISCARDED,
    STATUS_IN_USE,
    new_unit,
    recount,
)
from .results import ActionResult
from .store_service import UNSET
from ..validation import (
    ValidationError,
    parse_amount,
    parse_date,
    parse_quantity,
    require_text,
)


# =============================================================================
# TREE LOOKUPS
# =============================================================================

def find_item(tree: dict, item_id: str) -> dict | None:
    for item in tree["items"]:
        if item.get("id") == item_id:
            return item
    return None


def find_sub_item(item: dict, sub_item_id: str) -> dict | None:
    for sub_item in item.get("subItems") or []:
        if sub_item.get("id") == sub_item_id:
            return sub_item
    return None


def locate_unit(tree: dict, sub_item_id: str) -> tuple[dict, dict] | tuple[None, None]:
    """(item, unit) for a unit id anywhere in the inventory."""
    for item in tree["items"]:
        sub_item = find_sub_item(item, sub_item_id)
        if sub_item is not None:
            return item, sub_item
    return None, None


def upsert_bill(tree: dict, *, bill_number: str, bill_date: str, company: str, amount=UNSET) -> bool:
    """Create the bill or update company/date/amount in place. True if created."""
    for bill in tree["bills"]:
        if bill.get("billNumber") == bill_number:
            bill["company"] = company
            bill["billDate"] = bill_date
            if amount is not UNSET:
                bill["amount"] = amount
            return False
    tree["bills"].insert(0, {
        "billNumber": bill_number,
        "billDate": bill_date,
        "company": company,
        "amount": amount,
    })
    return True


def add_units_to(tree: dict, item: dict, quantity: int, *, bill_number: str, lot_name: str) -> list[str]:
    """Append ``quantity`` fresh Available units to ``item``; returns their ids."""
    ids = allocate_sub_item_ids(tree["items"], quantity)
    item.setdefault("subItems", [])
    for unit_id in ids:
        item["subItems"].append(new_unit(unit_id, bill_number=bill_number, lot_name=lot_name))
    recount(item)
    return ids


# =============================================================================
# READS
# =============================================================================

def list_items() -> list[dict]:
    return store_service.load()["items"]


def get_item(item_id: str) -> dict | None:
    return find_item(store_service.load(), item_id)


def find_unit(sub_item_id: str) -> dict | None:
    """
    Scanner lookup: resolve a unit id (the QR payload) to its parent item
    and the unit itself.
    """
    tree = store_service.load()
    item, sub_item = locate_unit(tree, str(sub_item_id).strip())
    if item is None:
        return None
    return {
        "item": {k: v for k, v in item.items() if k != "subItems"},
        "subItem": sub_item,
    }


def get_inventory_summary() -> dict:
    tree = store_service.load()
    counts = {STATUS_AVAILABLE: 0, STATUS_IN_USE: 0, STATUS_DISCARDED: 0}
    per_item = []
    for item in tree["items"]:
        item_counts = {STATUS_AVAILABLE: 0, STATUS_IN_USE: 0, STATUS_DISCARDED: 0}
        for sub_item in item.get("subItems") or []:
            status = sub_item.get("availabilityStatus")
            if status in item_counts:
                item_counts[status] += 1
                counts[status] += 1
        per_item.append({
            "id": item.get("id"),
            "name": item.get("name"),
            "totalQuantity": item.get("totalQuantity", 0),
            "byStatus": item_counts,
        })
    return {
        "items": len(tree["items"]),
        "units": sum(counts.values()),
        "byStatus": counts,
        "bills": len(tree["bills"]),
        "users": len(tree["users"]),
        "pendingNotifications": sum(1 for n in tree["notifications"] if n.get("status") == "pending"),
        "perItem": per_item,
    }


# =============================================================================
# ITEM MUTATIONS
# =============================================================================

@retry_on_conflict
def add_item(name: str, description: str | None = None) -> ActionResult:
    try:
        name = require_text({"name": name}, "name", "Item name")
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    if any((i.get("name") or "").lower() == name.lower() for i in tree["items"]):
        return ActionResult.fail(f'An item named "{name}" already exists.')

    item = {
        "id": new_item_id(tree["items"]),
        "name": name,
        "description": (description or "").strip(),
        "subItems": [],
        "totalQuantity": 0,
    }
    tree["items"].insert(0, item)
    store_service.save({"items": tree["items"]}, invalidate=("/", f"/item/{item['id']}"))
    current_app.logger.info("Added item %s (%s)", item["id"], name)
    return ActionResult.ok(f'Item "{name}" added.', data={"id": item["id"]})


@retry_on_conflict
def update_item(item_id: str, *, name: str | None = None, description: str | None = None) -> ActionResult:
    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")

    if name is not None:
        name = name.strip()
        if not name:
            return ActionResult.fail("Item name is required.")
        clash = any(
            (i.get("name") or "").lower() == name.lower() and i.get("id") != item_id
            for i in tree["items"]
        )
        if clash:
            return ActionResult.fail(f'An item named "{name}" already exists.')
        item["name"] = name
    if description is not None:
        item["description"] = description.strip()

    store_service.save({"items": tree["items"]}, invalidate=("/", f"/item/{item_id}"))
    return ActionResult.ok("Item updated.")


@retry_on_conflict
def delete_item(item_id: str) -> ActionResult:
    tree = store_service.load()
    remaining = [i for i in tree["items"] if i.get("id") != item_id]
    if len(remaining) == len(tree["items"]):
        return ActionResult.fail("Item not found.")
    store_service.save({"items": remaining}, invalidate=("/", f"/item/{item_id}"))
    current_app.logger.info("Deleted item %s", item_id)
    return ActionResult.ok("Item deleted.")


# =============================================================================
# UNIT MUTATIONS
# =============================================================================

@retry_on_conflict
def add_units(
    item_id: str,
    *,
    quantity,
    bill_number: str,
    bill_date: str,
    company: str,
    lot_name: str,
    amount=None,
) -> ActionResult:
    """
    Add a batch of units to an item and upsert its bill in one save.

    New unit ids continue from the highest id in the whole inventory.
    """
    try:
        quantity = parse_quantity(quantity)
        payload = {
            "billNumber": bill_number,
            "billDate": bill_date,
            "company": company,
            "lotName": lot_name,
        }
        bill_number = require_text(payload, "billNumber", "Bill number")
        bill_date = parse_date(payload, "billDate", "Bill date")
        company = require_text(payload, "company", "Company")
        lot_name = require_text(payload, "lotName", "Lot name")
        amount = parse_amount(amount)
    except ValidationError as e:
        return ActionResult.fail(str(e))

    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")

    ids = add_units_to(tree, item, quantity, bill_number=bill_number, lot_name=lot_name)
    upsert_bill(tree, bill_number=bill_number, bill_date=bill_date, company=company, amount=amount)

    store_service.save(
        {"items": tree["items"], "bills": tree["bills"]},
        invalidate=(f"/item/{item_id}", "/bills", f"/bills/{bill_number}"),
    )
    current_app.logger.info("Added %d units to %s (%s..%s)", quantity, item_id, ids[0], ids[-1])
    return ActionResult.ok(f"{quantity} unit(s) added.", data={"ids": ids})


@retry_on_conflict
def delete_sub_item(item_id: str, sub_item_id: str) -> ActionResult:
    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")
    before = len(item["subItems"])
    item["subItems"] = [si for si in item["subItems"] if si.get("id") != sub_item_id]
    if len(item["subItems"]) == before:
        return ActionResult.fail("Unit not found.")
    recount(item)
    store_service.save({"items": tree["items"]}, invalidate=(f"/item/{item_id}",))
    return ActionResult.ok("Unit deleted.")


@retry_on_conflict
def delete_lot(item_id: str, lot_name: str) -> ActionResult:
    tree = store_service.load()
    item = find_item(tree, item_id)
    if item is None:
        return ActionResult.fail("Item not found.")
    before = len(item["subItems"])
    item["subItems"] = [si for si in item["subItems"] if si.get("lotName") != lot_name]
    removed = before - len(item["subItems"])
    if removed == 0:
        return ActionResult.fail(f'Lot "{lot_name}" not found.')
    recount(item)
    store_service.save({"items": tree["items"]}, invalidate=(f"/item/{item_id}",))
    return ActionResult.ok(f'Lot "{lot_name}" deleted ({removed} unit(s)).')
