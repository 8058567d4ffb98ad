"""Closed error taxonomy and call result for ledger operations.

Rejected calls never raise out of the Ledger. Every operation returns a
LedgerResult carrying either the success value or exactly one LedgerError.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class LedgerError(str, Enum):
    """Reasons a ledger call can be rejected."""

    UNAUTHORIZED = "UNAUTHORIZED"
    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    SUPPLY_EXCEEDED = "SUPPLY_EXCEEDED"
    PAUSED = "PAUSED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_STAKE = "INSUFFICIENT_STAKE"
    INVALID_TIER = "INVALID_TIER"
    LOCK_EXISTS = "LOCK_EXISTS"
    LOCK_ACTIVE = "LOCK_ACTIVE"

    @property
    def code(self) -> int:
        """Legacy numeric code. Several kinds share one."""
        return _LEGACY_CODES[self]


_LEGACY_CODES: dict[LedgerError, int] = {
    LedgerError.UNAUTHORIZED: 100,
    LedgerError.ALREADY_INITIALIZED: 100,
    LedgerError.INSUFFICIENT_BALANCE: 101,
    LedgerError.INSUFFICIENT_STAKE: 102,
    LedgerError.SUPPLY_EXCEEDED: 103,
    LedgerError.PAUSED: 104,
    LedgerError.INVALID_RECIPIENT: 105,
    LedgerError.INVALID_AMOUNT: 106,
    LedgerError.LOCK_EXISTS: 107,
    LedgerError.LOCK_ACTIVE: 107,
    LedgerError.INVALID_TIER: 108,
}


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of a single ledger call."""

    ok: bool
    value: Any = None
    error: LedgerError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = True) -> LedgerResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> LedgerResult:
        return cls(ok=False, error=error)

    def as_dict(self) -> dict[str, Any]:
        """Wire form: {"value": ...} or {"error": "...", "code": N}."""
        if self.error is None:
            return {"value": self.value}
        return {"error": self.error.value, "code": self.error.code}


__all__ = ["LedgerError", "LedgerResult"]
