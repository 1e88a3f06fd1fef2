# Overview: Consistency report over the whole inventory tree (used by `flask store audit`).

from __future__ import annotations

from collections import Counter

from . import store_service
from .lifecycle_service import unit_violations


def audit_tree(tree: dict | None = None) -> list[str]:
    """
    Return a list of human-readable problems; empty when the tree is sound.

    Checks per-item unit invariants, unit id uniqueness across items, and
    units that reference a bill that does not exist.
    """
    if tree is None:
        tree = store_service.load()

    problems: list[str] = []
    bill_numbers = {b.get("billNumber") for b in tree["bills"]}
    unit_ids = Counter()

    for item in tree["items"]:
        problems.extend(unit_violations(item))
        for sub_item in item.get("subItems") or []:
            unit_ids[sub_item.get("id")] += 1
            bill = sub_item.get("billNumber")
            if bill and bill not in bill_numbers:
                problems.append(f"{item.get('id')}/{sub_item.get('id')}: unknown bill {bill}")

    for unit_id, count in sorted(unit_ids.items(), key=lambda kv: str(kv[0])):
        if count > 1:
            problems.append(f"unit id {unit_id} used {count} times")

    for field in ("personId", "email", "phone"):
        seen = Counter(
            str(u.get(field)).strip().lower() for u in tree["users"] if u.get(field)
        )
        for value, count in seen.items():
            if count > 1:
                problems.append(f"user {field} {value} used {count} times")

    return problems
