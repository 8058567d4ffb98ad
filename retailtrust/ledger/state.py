"""In-memory ledger state record.

One LedgerState is owned by one Ledger. Load/store around calls is the
host's job; to_snapshot/from_snapshot define the serialized form.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import (
    LedgerSnapshot,
    LockupEntry,
    MultiplierEntry,
    StakeEntry,
    Tier,
)


@dataclass(frozen=True, order=True)
class StakeKey:
    """Composite key for staked amounts and lockups."""

    account: str
    tier: Tier


@dataclass
class LedgerState:
    """Mutable state of the loyalty ledger."""

    admin: str
    paused: bool = False
    initialized: bool = False
    total_supply: int = 0
    block_height: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    staked: dict[StakeKey, int] = field(default_factory=dict)
    lockups: dict[StakeKey, int] = field(default_factory=dict)
    reward_multipliers: dict[Tier, int] = field(default_factory=dict)

    # -- Serialization --

    def to_snapshot(self) -> LedgerSnapshot:
        """Serialize to a LedgerSnapshot with deterministic entry order."""
        return LedgerSnapshot(
            admin=self.admin,
            paused=self.paused,
            initialized=self.initialized,
            total_supply=self.total_supply,
            block_height=self.block_height,
            balances=dict(sorted(self.balances.items())),
            staked=[
                StakeEntry(account=k.account, tier=k.tier, amount=v)
                for k, v in sorted(self.staked.items())
            ],
            lockups=[
                LockupEntry(account=k.account, tier=k.tier, unlock_height=v)
                for k, v in sorted(self.lockups.items())
            ],
            reward_multipliers=[
                MultiplierEntry(tier=t, multiplier=m)
                for t, m in sorted(self.reward_multipliers.items())
            ],
        )

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> LedgerState:
        """Rebuild state from a snapshot."""
        staked: dict[StakeKey, int] = {}
        for entry in snapshot.staked:
            key = StakeKey(entry.account, entry.tier)
            if key in staked:
                raise ValueError(f"duplicate stake entry: {entry.account}/{entry.tier.name}")
            staked[key] = entry.amount

        lockups: dict[StakeKey, int] = {}
        for entry in snapshot.lockups:
            key = StakeKey(entry.account, entry.tier)
            if key in lockups:
                raise ValueError(f"duplicate lockup entry: {entry.account}/{entry.tier.name}")
            lockups[key] = entry.unlock_height

        return cls(
            admin=snapshot.admin,
            paused=snapshot.paused,
            initialized=snapshot.initialized,
            total_supply=snapshot.total_supply,
            block_height=snapshot.block_height,
            balances=dict(snapshot.balances),
            staked=staked,
            lockups=lockups,
            reward_multipliers={e.tier: e.multiplier for e in snapshot.reward_multipliers},
        )

    def to_json(self) -> str:
        return self.to_snapshot().model_dump_json(indent=2)

    @classmethod
    def from_json(cls, raw: str | bytes) -> LedgerState:
        return cls.from_snapshot(LedgerSnapshot.model_validate_json(raw))


__all__ = ["LedgerState", "StakeKey"]
