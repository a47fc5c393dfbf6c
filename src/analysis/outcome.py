"""
Tagged result type shared by every aggregation cell and hypothesis test.

An Outcome is either *computed* (carries a value) or *not computable*
(carries a human-readable reason).  Callers branch on ``.ok``; a valid
numeric zero and a degenerate input can never be confused, and no routine
hands back a bare NaN in place of a reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class NotComputableError(ValueError):
    """Raised by :meth:`Outcome.unwrap` on a not-computable outcome."""


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    reason: str | None = None

    @classmethod
    def computed(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def not_computable(cls, reason: str) -> "Outcome":
        if not reason:
            raise ValueError("A not-computable outcome needs a reason.")
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None

    def unwrap(self) -> Any:
        """Return the value, or raise NotComputableError with the reason."""
        if not self.ok:
            raise NotComputableError(self.reason)
        return self.value

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default

    def to_dict(self) -> dict:
        """JSON-friendly form used by the statistics export."""
        if self.ok:
            return {"status": "computed", "value": self.value}
        return {"status": "not_computable", "reason": self.reason}
