"""Pydantic models for the loyalty ledger.

- Tier: the three staking categories
- LedgerConfig: fixed constants (supply ceiling, tier minimums, lockup)
- LedgerSnapshot: serialized form of the full ledger state
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Schema version - bump on breaking changes to snapshot format
# ---------------------------------------------------------------------------

LEDGER_SCHEMA_VERSION = 1

BURN_ADDRESS = "SP000000000000000000002Q6VF78"


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


class Tier(IntEnum):
    """Staking tiers. Values are the on-wire tier ids."""

    BRONZE = 1
    SILVER = 2
    GOLD = 3

    @classmethod
    def parse(cls, value: object) -> Tier | None:
        """Return the matching tier, or None for anything unrecognized."""
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------


class LedgerConfig(BaseModel):
    """Constants the ledger enforces. Not part of mutable state."""

    model_config = ConfigDict(frozen=True)

    max_supply: int = Field(default=1_000_000_000, gt=0)
    lockup_period: int = Field(default=1_440, ge=0)
    burn_address: str = Field(default=BURN_ADDRESS, min_length=1)
    tier_minimums: dict[Tier, int] = Field(
        default_factory=lambda: {
            Tier.BRONZE: 1_000,
            Tier.SILVER: 5_000,
            Tier.GOLD: 10_000,
        }
    )
    reward_multipliers: dict[Tier, int] = Field(
        default_factory=lambda: {
            Tier.BRONZE: 1,
            Tier.SILVER: 2,
            Tier.GOLD: 3,
        }
    )

    @field_validator("tier_minimums")
    @classmethod
    def _check_minimums(cls, v: dict[Tier, int]) -> dict[Tier, int]:
        missing = set(Tier) - set(v)
        if missing:
            raise ValueError(f"missing tier minimums: {sorted(t.name for t in missing)}")
        for tier, minimum in v.items():
            if minimum <= 0:
                raise ValueError(f"tier minimum must be positive: {tier.name}={minimum}")
        return v

    @field_validator("reward_multipliers")
    @classmethod
    def _check_multipliers(cls, v: dict[Tier, int]) -> dict[Tier, int]:
        missing = set(Tier) - set(v)
        if missing:
            raise ValueError(f"missing reward multipliers: {sorted(t.name for t in missing)}")
        return v

    def minimum_for(self, tier: Tier) -> int:
        return self.tier_minimums[tier]


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class StakeEntry(BaseModel):
    """Staked amount for one (account, tier) key."""

    account: str
    tier: Tier
    amount: int = Field(ge=0)


class LockupEntry(BaseModel):
    """Lock end height for one (account, tier) key."""

    account: str
    tier: Tier
    unlock_height: int = Field(ge=0)


class MultiplierEntry(BaseModel):
    tier: Tier
    multiplier: int


class LedgerSnapshot(BaseModel):
    """Full ledger state in serializable form.

    Composite-keyed maps are stored as sorted entry lists since JSON
    object keys can only be strings.
    """

    schema_version: int = LEDGER_SCHEMA_VERSION
    admin: str = Field(min_length=1)
    paused: bool = False
    initialized: bool = False
    total_supply: int = Field(default=0, ge=0)
    block_height: int = Field(default=0, ge=0)
    balances: dict[str, int] = Field(default_factory=dict)
    staked: list[StakeEntry] = Field(default_factory=list)
    lockups: list[LockupEntry] = Field(default_factory=list)
    reward_multipliers: list[MultiplierEntry] = Field(default_factory=list)

    @field_validator("balances")
    @classmethod
    def _check_balances(cls, v: dict[str, int]) -> dict[str, int]:
        for account, amount in v.items():
            if amount < 0:
                raise ValueError(f"negative balance for {account}")
        return v

    @model_validator(mode="after")
    def _check_version(self) -> LedgerSnapshot:
        if self.schema_version != LEDGER_SCHEMA_VERSION:
            raise ValueError(
                f"schema_version mismatch: got {self.schema_version}, "
                f"expected {LEDGER_SCHEMA_VERSION}"
            )
        return self


__all__ = [
    "BURN_ADDRESS",
    "LEDGER_SCHEMA_VERSION",
    "LedgerConfig",
    "LedgerSnapshot",
    "LockupEntry",
    "MultiplierEntry",
    "StakeEntry",
    "Tier",
]
