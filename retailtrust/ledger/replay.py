"""Deterministic replay of a ledger call log.

A call log is JSON-lines, one LedgerCall per line:

    {"op": "mint", "caller": "ST1...", "recipient": "ST2...", "amount": 1000}
    {"op": "stake", "caller": "ST2...", "amount": 1000, "tier": 1, "block_height": 1000}

Calls are applied in file order against one Ledger. Invariants can be
checked after every call so a log that breaks accounting is pinpointed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Literal

import bittensor as bt
from pydantic import BaseModel, StrictBool, StrictInt, ValidationError, model_validator

from .determinism import compute_state_hash
from .engine import Ledger
from .errors import LedgerResult
from .invariants import verify_invariants

Op = Literal["set_paused", "initialize", "mint", "transfer", "stake", "unstake"]

_REQUIRED_ARGS: dict[str, tuple[str, ...]] = {
    "set_paused": ("pause",),
    "initialize": (),
    "mint": ("recipient", "amount"),
    "transfer": ("recipient", "amount"),
    "stake": ("amount", "tier"),
    "unstake": ("amount", "tier"),
}


class LedgerCall(BaseModel):
    """One recorded call into the ledger."""

    op: Op
    caller: str
    block_height: StrictInt | None = None
    recipient: str | None = None
    amount: StrictInt | None = None
    tier: StrictInt | None = None
    pause: StrictBool | None = None

    @model_validator(mode="after")
    def _check_args(self) -> LedgerCall:
        missing = [name for name in _REQUIRED_ARGS[self.op] if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.op} requires {', '.join(missing)}")
        if self.block_height is not None and self.block_height < 0:
            raise ValueError("block_height must be non-negative")
        return self


def _apply_set_paused(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.set_paused(call.caller, bool(call.pause))


def _apply_initialize(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.initialize(call.caller)


def _apply_mint(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.mint(call.caller, call.recipient, call.amount)


def _apply_transfer(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.transfer(call.caller, call.recipient, call.amount)


def _apply_stake(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.stake(call.caller, call.amount, call.tier, block_height=call.block_height)


def _apply_unstake(ledger: Ledger, call: LedgerCall) -> LedgerResult:
    return ledger.unstake(call.caller, call.amount, call.tier, block_height=call.block_height)


_DISPATCH: dict[str, Callable[[Ledger, LedgerCall], LedgerResult]] = {
    "set_paused": _apply_set_paused,
    "initialize": _apply_initialize,
    "mint": _apply_mint,
    "transfer": _apply_transfer,
    "stake": _apply_stake,
    "unstake": _apply_unstake,
}


@dataclass
class ReplayOutcome:
    """Result of one replayed call."""

    index: int
    op: str
    caller: str
    result: dict[str, Any]
    invariant_errors: list[str] = field(default_factory=list)


@dataclass
class ReplayReport:
    """Summary of a full replay."""

    outcomes: list[ReplayOutcome] = field(default_factory=list)
    final_hash: str = ""

    @property
    def accepted(self) -> int:
        return sum(1 for o in self.outcomes if "value" in o.result)

    @property
    def rejected(self) -> int:
        return len(self.outcomes) - self.accepted

    @property
    def violations(self) -> list[ReplayOutcome]:
        return [o for o in self.outcomes if o.invariant_errors]

    @property
    def ok(self) -> bool:
        return not self.violations


def load_calls(path: str | Path) -> list[LedgerCall]:
    """Parse a JSON-lines call log. Raises ValueError naming the bad line."""
    calls: list[LedgerCall] = []
    with open(path) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                calls.append(LedgerCall.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as e:
                raise ValueError(f"{path}:{lineno}: invalid call: {e}") from e
    return calls


def replay(
    ledger: Ledger,
    calls: Iterable[LedgerCall],
    check_invariants: bool = True,
) -> ReplayReport:
    """Apply calls in order and collect per-call outcomes."""
    report = ReplayReport()
    for index, call in enumerate(calls):
        result = _DISPATCH[call.op](ledger, call)
        outcome = ReplayOutcome(
            index=index,
            op=call.op,
            caller=call.caller,
            result=result.as_dict(),
        )
        if check_invariants:
            verification = verify_invariants(ledger.state, ledger.config)
            if not verification:
                outcome.invariant_errors = verification.errors
                bt.logging.error({"ledger_replay": {
                    "event": "invariant_violation",
                    "index": index,
                    "op": call.op,
                    "errors": verification.errors,
                }})
        report.outcomes.append(outcome)

    report.final_hash = compute_state_hash(ledger.state)
    bt.logging.info({"ledger_replay": {
        "event": "done",
        "calls": len(report.outcomes),
        "accepted": report.accepted,
        "rejected": report.rejected,
        "final_hash": report.final_hash,
    }})
    return report


__all__ = [
    "LedgerCall",
    "ReplayOutcome",
    "ReplayReport",
    "load_calls",
    "replay",
]
