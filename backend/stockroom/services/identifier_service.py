# Overview: ID allocation for units, items and notifications.

"""
Identifier Service

UNIT IDS:
- Six-digit, zero-padded numeric strings ("000001").
- Unique across the whole inventory, not per item: allocation scans every
  item's subItems for the highest numeric id and counts up from there.
- Non-numeric ids already in the tree are ignored by the scan.

RECORD IDS:
- Items and notifications use "<prefix>-<epoch milliseconds>". When two
  records are created within the same millisecond the later one is bumped
  forward until it is unique.
"""

from __future__ import annotations

import time
from typing import Iterable

SUB_ITEM_ID_WIDTH = 6


def format_sub_item_id(number: int) -> str:
    return str(number).zfill(SUB_ITEM_ID_WIDTH)


def parse_sub_item_number(value) -> int | None:
    """Numeric value of a unit id, or None if it is not a plain integer."""
    if value is None:
        return None
    s = str(value).strip()
    if not (s.isascii() and s.isdigit()):
        return None
    return int(s)


def next_sub_item_number(items: Iterable[dict]) -> int:
    """Max numeric unit id across every item, plus one."""
    max_id = 0
    for item in items:
        for sub_item in item.get("subItems") or []:
            number = parse_sub_item_number(sub_item.get("id"))
            if number is not None and number > max_id:
                max_id = number
    return max_id + 1


def allocate_sub_item_ids(items: Iterable[dict], count: int) -> list[str]:
    """``count`` sequential unit ids above everything already in use."""
    start = next_sub_item_number(items)
    return [format_sub_item_id(start + i) for i in range(count)]


def timestamp_id(prefix: str, existing: Iterable[str] = ()) -> str:
    taken = set(existing)
    stamp = int(time.time() * 1000)
    candidate = f"{prefix}-{stamp}"
    while candidate in taken:
        stamp += 1
        candidate = f"{prefix}-{stamp}"
    return candidate


def new_item_id(items: Iterable[dict]) -> str:
    return timestamp_id("item", (i.get("id") for i in items))


def new_notification_id(notifications: Iterable[dict], *, registration: bool = False) -> str:
    prefix = "notif-reg" if registration else "notif"
    return timestamp_id(prefix, (n.get("id") for n in notifications))
