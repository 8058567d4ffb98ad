"""Canonical hashing of ledger state.

Identical call sequences against identical starting state must produce the
same hash, which makes replays comparable across hosts.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .models import LedgerSnapshot
from .state import LedgerState


def compute_hash(data: Any) -> str:
    """SHA256 hex digest of the sorted-key compact JSON encoding."""
    encoded = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode()).hexdigest()


def compute_state_hash(state: LedgerState | LedgerSnapshot) -> str:
    """Hash a state or snapshot via its serialized snapshot form."""
    snapshot = state.to_snapshot() if isinstance(state, LedgerState) else state
    return compute_hash(snapshot.model_dump(mode="json"))


__all__ = ["compute_hash", "compute_state_hash"]
