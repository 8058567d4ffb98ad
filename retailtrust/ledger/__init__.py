"""Loyalty-point ledger: balances, supply ceiling and tiered staking.

The Ledger is a synchronous state machine over one LedgerState:
- Administration: pause, mint, one-time initialization
- Transfers between accounts
- Staking per (account, tier) with a block-height lockup

Rejected calls return a LedgerResult carrying a LedgerError and never
mutate state.
"""

from .determinism import compute_state_hash
from .engine import Ledger
from .errors import LedgerError, LedgerResult
from .invariants import VerificationResult, verify_invariants
from .models import (
    BURN_ADDRESS,
    LEDGER_SCHEMA_VERSION,
    LedgerConfig,
    LedgerSnapshot,
    Tier,
)
from .state import LedgerState, StakeKey

__all__ = [
    "BURN_ADDRESS",
    "LEDGER_SCHEMA_VERSION",
    "Ledger",
    "LedgerConfig",
    "LedgerError",
    "LedgerResult",
    "LedgerSnapshot",
    "LedgerState",
    "StakeKey",
    "Tier",
    "VerificationResult",
    "compute_state_hash",
    "verify_invariants",
]
