"""Tests for ledger models, snapshots and invariant reporting."""

import pytest
from pydantic import ValidationError

from retailtrust.ledger import (
    LEDGER_SCHEMA_VERSION,
    Ledger,
    LedgerConfig,
    LedgerError,
    LedgerResult,
    LedgerSnapshot,
    LedgerState,
    StakeKey,
    Tier,
    compute_state_hash,
    verify_invariants,
)
from retailtrust.ledger.determinism import compute_hash

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


def _make_ledger() -> Ledger:
    ledger = Ledger(admin=ADMIN)
    ledger.initialize(ADMIN)
    ledger.mint(ADMIN, "alice", 20_000)
    ledger.mint(ADMIN, "bob", 3_000)
    ledger.stake("alice", 5_000, Tier.SILVER, block_height=100)
    ledger.stake("alice", 1_000, Tier.BRONZE, block_height=200)
    ledger.transfer("bob", "carol", 500)
    ledger.set_paused(ADMIN, True)
    return ledger


class TestTier:

    def test_parse_known(self):
        assert Tier.parse(1) is Tier.BRONZE
        assert Tier.parse(Tier.GOLD) is Tier.GOLD

    @pytest.mark.parametrize("value", [0, 4, 999, -1, "1", 1.0, None, True])
    def test_parse_unknown(self, value):
        assert Tier.parse(value) is None


class TestLedgerConfig:

    def test_defaults(self):
        config = LedgerConfig()
        assert config.max_supply == 1_000_000_000
        assert config.lockup_period == 1_440
        assert config.minimum_for(Tier.BRONZE) == 1_000
        assert config.minimum_for(Tier.SILVER) == 5_000
        assert config.minimum_for(Tier.GOLD) == 10_000
        assert config.reward_multipliers == {Tier.BRONZE: 1, Tier.SILVER: 2, Tier.GOLD: 3}

    def test_frozen(self):
        config = LedgerConfig()
        with pytest.raises(ValidationError):
            config.max_supply = 5

    def test_non_positive_minimum_rejected(self):
        with pytest.raises(ValidationError, match="positive"):
            LedgerConfig(tier_minimums={Tier.BRONZE: 0, Tier.SILVER: 1, Tier.GOLD: 1})

    def test_missing_tier_minimum_rejected(self):
        with pytest.raises(ValidationError, match="missing tier minimums"):
            LedgerConfig(tier_minimums={Tier.BRONZE: 1})

    def test_non_positive_supply_rejected(self):
        with pytest.raises(ValidationError):
            LedgerConfig(max_supply=0)

    def test_negative_lockup_rejected(self):
        with pytest.raises(ValidationError):
            LedgerConfig(lockup_period=-1)


class TestLedgerResult:

    def test_success_is_truthy(self):
        result = LedgerResult.success(True)
        assert result
        assert result.as_dict() == {"value": True}

    def test_failure_is_falsy(self):
        result = LedgerResult.failure(LedgerError.PAUSED)
        assert not result
        assert result.as_dict() == {"error": "PAUSED", "code": 104}

    def test_as_dict_without_error_is_value_form(self):
        assert LedgerResult(ok=True, value=False).as_dict() == {"value": False}

    def test_legacy_codes(self):
        assert LedgerError.UNAUTHORIZED.code == 100
        assert LedgerError.ALREADY_INITIALIZED.code == 100
        assert LedgerError.SUPPLY_EXCEEDED.code == 103
        assert LedgerError.INVALID_RECIPIENT.code == 105
        assert LedgerError.INVALID_AMOUNT.code == 106
        assert LedgerError.LOCK_EXISTS.code == 107
        assert LedgerError.LOCK_ACTIVE.code == 107
        assert LedgerError.INVALID_TIER.code == 108

    def test_kinds_stay_distinct(self):
        assert LedgerError.UNAUTHORIZED != LedgerError.ALREADY_INITIALIZED
        assert LedgerError.LOCK_EXISTS != LedgerError.LOCK_ACTIVE
        assert len(set(LedgerError)) == 11


class TestSnapshot:

    def test_roundtrip_preserves_state(self):
        ledger = _make_ledger()
        restored = LedgerState.from_snapshot(ledger.state.to_snapshot())
        assert restored == ledger.state

    def test_json_roundtrip(self):
        ledger = _make_ledger()
        restored = LedgerState.from_json(ledger.state.to_json())
        assert restored == ledger.state
        assert restored.staked[StakeKey("alice", Tier.SILVER)] == 5_000
        assert restored.lockups[StakeKey("alice", Tier.BRONZE)] == 1_640
        assert restored.reward_multipliers[Tier.GOLD] == 3
        assert restored.paused

    def test_restored_ledger_keeps_operating(self):
        ledger = _make_ledger()
        resumed = Ledger(admin=ADMIN, state=LedgerState.from_json(ledger.state.to_json()))
        assert resumed.set_paused(ADMIN, False)
        assert resumed.unstake("alice", 5_000, Tier.SILVER, block_height=1_540)
        assert resumed.get_balance("alice") == 19_000
        assert resumed.initialize(ADMIN).error == LedgerError.ALREADY_INITIALIZED

    def test_admin_mismatch_rejected(self):
        state = LedgerState(admin="someone_else")
        with pytest.raises(ValueError, match="admin"):
            Ledger(admin=ADMIN, state=state)

    def test_snapshot_entries_sorted(self):
        snapshot = _make_ledger().state.to_snapshot()
        keys = [(e.account, e.tier) for e in snapshot.staked]
        assert keys == sorted(keys)

    def test_schema_version_present(self):
        snapshot = LedgerState(admin=ADMIN).to_snapshot()
        assert snapshot.schema_version == LEDGER_SCHEMA_VERSION

    def test_schema_version_mismatch_rejected(self):
        data = LedgerState(admin=ADMIN).to_snapshot().model_dump(mode="json")
        data["schema_version"] = LEDGER_SCHEMA_VERSION + 1
        with pytest.raises(ValidationError, match="schema_version"):
            LedgerSnapshot(**data)

    def test_negative_balance_rejected(self):
        with pytest.raises(ValidationError, match="negative balance"):
            LedgerSnapshot(admin=ADMIN, balances={"alice": -1})

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValidationError):
            LedgerSnapshot(admin=ADMIN, staked=[{"account": "a", "tier": 999, "amount": 1}])

    def test_duplicate_stake_entry_rejected(self):
        snapshot = LedgerSnapshot(admin=ADMIN, staked=[
            {"account": "a", "tier": 1, "amount": 1},
            {"account": "a", "tier": 1, "amount": 2},
        ])
        with pytest.raises(ValueError, match="duplicate stake"):
            LedgerState.from_snapshot(snapshot)


class TestStateHash:

    def test_hash_stable_across_roundtrip(self):
        ledger = _make_ledger()
        restored = LedgerState.from_json(ledger.state.to_json())
        assert compute_state_hash(restored) == compute_state_hash(ledger.state)
        assert compute_state_hash(ledger.state.to_snapshot()) == compute_state_hash(ledger.state)

    def test_hash_changes_with_state(self):
        ledger = _make_ledger()
        before = compute_state_hash(ledger.state)
        ledger.set_paused(ADMIN, False)
        assert compute_state_hash(ledger.state) != before

    def test_compute_hash_key_order_independent(self):
        assert compute_hash({"a": 1, "b": 2}) == compute_hash({"b": 2, "a": 1})


class TestInvariants:

    def test_clean_state_valid(self):
        ledger = _make_ledger()
        result = verify_invariants(ledger.state, ledger.config)
        assert result
        assert result.errors == []

    def test_conservation_violation_reported(self):
        ledger = _make_ledger()
        ledger.state.balances["alice"] += 1
        result = verify_invariants(ledger.state, ledger.config)
        assert not result
        assert any(e.startswith("conservation") for e in result.errors)

    def test_orphan_lockup_reported(self):
        ledger = _make_ledger()
        ledger.state.lockups[StakeKey("bob", Tier.GOLD)] = 10
        result = verify_invariants(ledger.state, ledger.config)
        assert any("lockup without stake" in e for e in result.errors)

    def test_stake_without_lock_reported(self):
        ledger = _make_ledger()
        del ledger.state.lockups[StakeKey("alice", Tier.SILVER)]
        result = verify_invariants(ledger.state, ledger.config)
        assert any("no lockup for staked" in e for e in result.errors)

    def test_ceiling_and_negative_reported(self):
        ledger = Ledger(admin=ADMIN, config=LedgerConfig(max_supply=10))
        ledger.state.total_supply = 11
        ledger.state.balances["x"] = 12
        ledger.state.balances["y"] = -1
        result = verify_invariants(ledger.state, ledger.config)
        assert any(e.startswith("supply_ceiling") for e in result.errors)
        assert any(e.startswith("non_negative") for e in result.errors)
