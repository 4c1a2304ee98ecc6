from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one dispatch, built-in or custom."""

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "ActionResult":
        return cls(True, message)

    @classmethod
    def fail(cls, message: str) -> "ActionResult":
        return cls(False, message)

    def as_message(self, message_type: str) -> Dict[str, Any]:
        return {"type": message_type, "success": self.success, "message": self.message}
