# Overview: Return contract shared by every mutating service action.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ActionResult:
    """
    ``success`` is the only failure signal. Validation and stale-reference
    problems come back as ``success=False`` with a message; they are never
    raised.
    """
    success: bool
    message: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, message: str | None = None, data: Any = None) -> "ActionResult":
        return cls(True, message, data)

    @classmethod
    def fail(cls, message: str) -> "ActionResult":
        return cls(False, message)

    def to_dict(self) -> dict:
        out: dict = {"success": self.success}
        if self.message is not None:
            out["message"] = self.message
        if self.data is not None:
            out["data"] = self.data
        return out
