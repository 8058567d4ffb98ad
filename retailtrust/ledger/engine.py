"""Loyalty ledger state machine.

Every operation validates all preconditions before writing anything, so a
rejected call leaves state untouched. Calls must be serialized by the host;
the ledger does no locking and no I/O.
"""

from __future__ import annotations

from typing import Any

import bittensor as bt

from .errors import LedgerError, LedgerResult
from .models import LedgerConfig, Tier
from .state import LedgerState, StakeKey


def _short(identity: str | None) -> str:
    return identity[:16] if identity else "none"


def _is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Ledger:
    """Owns one LedgerState and applies operations to it.

    Args:
        admin: Identity allowed to pause, mint and initialize. Fixed for the
            lifetime of the ledger.
        config: Supply ceiling, tier minimums, lockup period, burn address.
        state: Existing state to operate on (e.g. restored from a snapshot).
            Its admin must match ``admin``.
    """

    def __init__(
        self,
        admin: str,
        config: LedgerConfig | None = None,
        state: LedgerState | None = None,
    ):
        if not admin:
            raise ValueError("admin identity is required")
        if state is not None and state.admin != admin:
            raise ValueError("state admin does not match ledger admin")
        self.config = config or LedgerConfig()
        self.state = state if state is not None else LedgerState(admin=admin)

    # -- Logging helpers --

    def _reject(self, op: str, error: LedgerError, caller: str | None) -> LedgerResult:
        bt.logging.warning({"ledger": {
            "event": "rejected",
            "op": op,
            "error": error.value,
            "caller": _short(caller),
        }})
        return LedgerResult.failure(error)

    def _accept(self, op: str, value: Any = True, **fields: Any) -> LedgerResult:
        bt.logging.info({"ledger": {"event": op, **fields}})
        return LedgerResult.success(value)

    def _height(self, block_height: int | None) -> int:
        if block_height is None:
            return self.state.block_height
        if not _is_amount(block_height) or block_height < 0:
            raise ValueError(f"block_height must be a non-negative int: {block_height!r}")
        return block_height

    # -- Administration --

    @property
    def admin(self) -> str:
        return self.state.admin

    def is_admin(self, caller: str) -> bool:
        return caller == self.state.admin

    def set_paused(self, caller: str, pause: bool) -> LedgerResult:
        if not self.is_admin(caller):
            return self._reject("set_paused", LedgerError.UNAUTHORIZED, caller)

        self.state.paused = bool(pause)
        return self._accept("set_paused", self.state.paused, paused=self.state.paused)

    def initialize(self, caller: str) -> LedgerResult:
        """One-time setup: writes the per-tier reward multipliers."""
        if not self.is_admin(caller):
            return self._reject("initialize", LedgerError.UNAUTHORIZED, caller)
        if self.state.initialized:
            return self._reject("initialize", LedgerError.ALREADY_INITIALIZED, caller)

        self.state.reward_multipliers = dict(self.config.reward_multipliers)
        self.state.initialized = True
        return self._accept("initialize", multipliers={
            t.name.lower(): m for t, m in sorted(self.state.reward_multipliers.items())
        })

    def mint(self, caller: str, recipient: str, amount: int) -> LedgerResult:
        if not self.is_admin(caller):
            return self._reject("mint", LedgerError.UNAUTHORIZED, caller)
        if recipient == self.config.burn_address:
            return self._reject("mint", LedgerError.INVALID_RECIPIENT, caller)
        if not _is_amount(amount) or amount <= 0:
            return self._reject("mint", LedgerError.INVALID_AMOUNT, caller)
        if self.state.total_supply + amount > self.config.max_supply:
            return self._reject("mint", LedgerError.SUPPLY_EXCEEDED, caller)

        balances = self.state.balances
        balances[recipient] = balances.get(recipient, 0) + amount
        self.state.total_supply += amount
        return self._accept(
            "mint",
            recipient=_short(recipient),
            amount=amount,
            total_supply=self.state.total_supply,
        )

    # -- Transfers --

    def transfer(self, caller: str, recipient: str, amount: int) -> LedgerResult:
        if self.state.paused:
            return self._reject("transfer", LedgerError.PAUSED, caller)
        if recipient == self.config.burn_address:
            return self._reject("transfer", LedgerError.INVALID_RECIPIENT, caller)
        if not _is_amount(amount) or amount <= 0:
            return self._reject("transfer", LedgerError.INVALID_AMOUNT, caller)
        balance = self.state.balances.get(caller, 0)
        if balance < amount:
            return self._reject("transfer", LedgerError.INSUFFICIENT_BALANCE, caller)

        balances = self.state.balances
        balances[caller] = balance - amount
        balances[recipient] = balances.get(recipient, 0) + amount
        return self._accept(
            "transfer",
            sender=_short(caller),
            recipient=_short(recipient),
            amount=amount,
        )

    # -- Staking --

    def stake(
        self,
        caller: str,
        amount: int,
        tier: int,
        block_height: int | None = None,
    ) -> LedgerResult:
        """Lock ``amount`` of the caller's balance in ``tier``.

        Staking is not additive: while a lock is open for (caller, tier) a
        second stake is rejected with LOCK_EXISTS until the stake is fully
        withdrawn.
        """
        height = self._height(block_height)
        parsed = Tier.parse(tier)
        if parsed is None:
            return self._reject("stake", LedgerError.INVALID_TIER, caller)
        if self.state.paused:
            return self._reject("stake", LedgerError.PAUSED, caller)
        if not _is_amount(amount) or amount < self.config.minimum_for(parsed):
            return self._reject("stake", LedgerError.INVALID_AMOUNT, caller)
        balance = self.state.balances.get(caller, 0)
        if balance < amount:
            return self._reject("stake", LedgerError.INSUFFICIENT_BALANCE, caller)
        key = StakeKey(caller, parsed)
        if key in self.state.lockups:
            return self._reject("stake", LedgerError.LOCK_EXISTS, caller)

        unlock_height = height + self.config.lockup_period
        self.state.balances[caller] = balance - amount
        self.state.staked[key] = self.state.staked.get(key, 0) + amount
        self.state.lockups[key] = unlock_height
        self.state.block_height = height
        return self._accept(
            "stake",
            account=_short(caller),
            tier=parsed.name.lower(),
            amount=amount,
            unlock_height=unlock_height,
        )

    def unstake(
        self,
        caller: str,
        amount: int,
        tier: int,
        block_height: int | None = None,
    ) -> LedgerResult:
        """Return ``amount`` of a stake to the caller's balance.

        A key with no recorded lock reads as unlock height 0 and is always
        withdrawable. Withdrawing the full stake closes the lock slot.
        """
        height = self._height(block_height)
        parsed = Tier.parse(tier)
        if parsed is None:
            return self._reject("unstake", LedgerError.INVALID_TIER, caller)
        if self.state.paused:
            return self._reject("unstake", LedgerError.PAUSED, caller)
        if not _is_amount(amount) or amount <= 0:
            return self._reject("unstake", LedgerError.INVALID_AMOUNT, caller)
        key = StakeKey(caller, parsed)
        staked = self.state.staked.get(key, 0)
        if staked < amount:
            return self._reject("unstake", LedgerError.INSUFFICIENT_STAKE, caller)
        if height < self.state.lockups.get(key, 0):
            return self._reject("unstake", LedgerError.LOCK_ACTIVE, caller)

        remaining = staked - amount
        if remaining == 0:
            del self.state.staked[key]
            self.state.lockups.pop(key, None)
        else:
            self.state.staked[key] = remaining
        balances = self.state.balances
        balances[caller] = balances.get(caller, 0) + amount
        self.state.block_height = height
        return self._accept(
            "unstake",
            account=_short(caller),
            tier=parsed.name.lower(),
            amount=amount,
            remaining=remaining,
        )

    # -- Queries --

    @property
    def paused(self) -> bool:
        return self.state.paused

    @property
    def initialized(self) -> bool:
        return self.state.initialized

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    def get_balance(self, account: str) -> int:
        return self.state.balances.get(account, 0)

    def get_staked(self, account: str, tier: int) -> int:
        parsed = Tier.parse(tier)
        if parsed is None:
            return 0
        return self.state.staked.get(StakeKey(account, parsed), 0)

    def get_lockup_end(self, account: str, tier: int) -> int:
        parsed = Tier.parse(tier)
        if parsed is None:
            return 0
        return self.state.lockups.get(StakeKey(account, parsed), 0)

    def get_reward_multiplier(self, tier: int) -> int:
        """Multiplier written at initialize; 0 before that."""
        parsed = Tier.parse(tier)
        if parsed is None:
            return 0
        return self.state.reward_multipliers.get(parsed, 0)


__all__ = ["Ledger"]
