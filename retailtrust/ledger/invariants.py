"""Global accounting checks over a LedgerState.

Run after calls in tests and during replay. Reports every violation
rather than stopping at the first.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import LedgerConfig
from .state import LedgerState


@dataclass
class VerificationResult:
    """Outcome of invariant verification."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def verify_invariants(state: LedgerState, config: LedgerConfig) -> VerificationResult:
    errors: list[str] = []

    # Supply ceiling
    if state.total_supply > config.max_supply:
        errors.append(
            f"supply_ceiling: total_supply {state.total_supply} > max_supply {config.max_supply}"
        )

    # Non-negativity
    if state.total_supply < 0:
        errors.append(f"non_negative: total_supply {state.total_supply}")
    for account, amount in state.balances.items():
        if amount < 0:
            errors.append(f"non_negative: balance {account}={amount}")
    for key, amount in state.staked.items():
        if amount < 0:
            errors.append(f"non_negative: staked {key.account}/{key.tier.name}={amount}")

    # Conservation
    held = sum(state.balances.values()) + sum(state.staked.values())
    if held != state.total_supply:
        errors.append(
            f"conservation: balances+staked {held} != total_supply {state.total_supply}"
        )

    # Lock iff positive stake
    for key, amount in state.staked.items():
        if amount > 0 and key not in state.lockups:
            errors.append(f"lock_presence: no lockup for staked {key.account}/{key.tier.name}")
    for key in state.lockups:
        if state.staked.get(key, 0) <= 0:
            errors.append(f"lock_presence: lockup without stake for {key.account}/{key.tier.name}")

    # Burn address holds nothing
    if state.balances.get(config.burn_address, 0) != 0:
        errors.append("burn_address: holds a balance")

    return VerificationResult(valid=not errors, errors=errors)


__all__ = ["VerificationResult", "verify_invariants"]
