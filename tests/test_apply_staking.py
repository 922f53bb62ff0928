from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from tierstake.ledger.constants import SECONDS_PER_MONTH, SECONDS_PER_YEAR, U64_MAX
from tierstake.ledger.staking_view import get_pool_info, get_staking_info
from tierstake.runtime.domain_apply import ApplyError, apply_tx, apply_tx_atomic
from tierstake.runtime.state_invariants import audit_pool_totals
from tierstake.runtime.token_ledger import balance_of

Json = Dict[str, Any]

T0 = 1_700_000_000


def _state(now: int = T0, **balances: int) -> Json:
    return {
        "time": now,
        "params": {},
        "accounts": {k: {"nonce": 0, "balance": int(v), "keys": []} for k, v in balances.items()},
    }


class _Signer:
    """Tracks per-signer nonces so tests read like a tx log."""

    def __init__(self) -> None:
        self._n: Dict[str, int] = {}

    def __call__(self, tx_type: str, signer: str, **payload: Any) -> Json:
        self._n[signer] = self._n.get(signer, 0) + 1
        return {"tx_type": tx_type, "signer": signer, "nonce": self._n[signer], "payload": payload}


def _apply(st: Json, env: Json) -> Json:
    out = apply_tx_atomic(st, env)
    assert isinstance(out, dict)
    return out


def _init(st: Json, tx: _Signer, *, profile: str = "pool", pool_id: str = "p1", **kw: Any) -> Json:
    return _apply(st, tx("STAKING_POOL_INIT", "admin", pool_id=pool_id, profile=profile, **kw))


def _position(st: Json, staker: str, pool_id: str = "p1") -> Json:
    return st["staking"]["positions"][pool_id][staker]


def _pool(st: Json, pool_id: str = "p1") -> Json:
    return st["staking"]["pools"][pool_id]


def test_pool_init_defaults_and_duplicate() -> None:
    st = _state()
    tx = _Signer()
    meta = _init(st, tx)
    assert meta["applied"] == "STAKING_POOL_INIT"
    assert meta["event"]["event"] == "pool_initialized"

    pool = _pool(st)
    assert pool["authority"] == "admin"
    assert pool["tier_thresholds"] == [500_000_000, 5_000_000_000, 50_000_000_000]
    assert pool["tier_base_rates"] == [5, 10, 15]
    assert pool["total_staked"] == 0
    assert pool["created_at"] == T0

    with pytest.raises(ApplyError) as e:
        _init(st, tx)
    assert e.value.code == "already_exists"


def test_pool_init_rejects_bad_options() -> None:
    st = _state()
    tx = _Signer()
    for kw in ({"profile": "nope"}, {"tier_basis": "nope"}, {"restake_policy": "nope"}):
        with pytest.raises(ApplyError) as e:
            _apply(st, tx("STAKING_POOL_INIT", "admin", pool_id="p1", **kw))
        assert e.value.code == "invalid_payload"


def test_stake_moves_funds_into_vault_and_freezes_rate() -> None:
    st = _state(alice=10_000_000)
    tx = _Signer()
    _init(st, tx)

    meta = _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000_000, lock_duration=3))
    ev = meta["event"]
    assert ev["event"] == "staked"
    assert ev["actor"] == "alice"
    assert ev["ts"] == T0
    assert ev["lock_multiplier"] == 120
    assert ev["base_rate"] == 5
    # 5 * 100 / 100 = 5; 5 * 120 / 100 = 6
    assert ev["effective_rate"] == 6

    pos = _position(st, "alice")
    assert pos["principal"] == 1_000_000
    assert pos["lock_duration"] == 3 * SECONDS_PER_MONTH
    assert pos["lock_input"] == 3
    assert pos["stake_time"] == T0
    assert pos["last_claim_time"] == T0
    assert pos["cumulative_stake_for_tier"] == 1_000_000

    assert balance_of(st, "alice") == 9_000_000
    assert balance_of(st, "vault:p1") == 1_000_000
    assert _pool(st)["total_staked"] == 1_000_000
    assert audit_pool_totals(st) == []


def test_stake_without_funds_rolls_back() -> None:
    st = _state(alice=10)
    tx = _Signer()
    _init(st, tx)
    before = copy.deepcopy(st)

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKE", "alice", pool_id="p1", amount=11, lock_duration=0))
    assert e.value.code == "insufficient_balance"

    # Only the nonce moved.
    before["accounts"]["alice"]["nonce"] = 1
    assert st == before


@pytest.mark.parametrize(
    "payload",
    [
        {"amount": 0, "lock_duration": 0},
        {"amount": -5, "lock_duration": 0},
        {"amount": True, "lock_duration": 0},
        {"amount": "x", "lock_duration": 0},
        {"lock_duration": 0},
        {"amount": 10, "lock_duration": 256},
        {"amount": 10, "lock_duration": -1},
        {"amount": 1.9, "lock_duration": 0},
        {"amount": 2.0, "lock_duration": 0},
        {"amount": 10, "lock_duration": 0.7},
        {"amount": "1.5", "lock_duration": 0},
    ],
)
def test_stake_payload_validation(payload: Json) -> None:
    st = _state(alice=1_000)
    tx = _Signer()
    _init(st, tx)
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKE", "alice", pool_id="p1", **payload))
    assert e.value.code == "invalid_payload"


def test_stake_on_missing_pool_is_not_found() -> None:
    st = _state(alice=1_000)
    with pytest.raises(ApplyError) as e:
        apply_tx_atomic(st, {"tx_type": "STAKE", "signer": "alice", "nonce": 1, "payload": {"pool_id": "nope", "amount": 1, "lock_duration": 0}})
    assert e.value.code == "not_found"


def test_unstake_lock_boundary_is_inclusive() -> None:
    st = _state(alice=10_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000, lock_duration=3))
    expiry = T0 + 3 * SECONDS_PER_MONTH

    st["time"] = expiry - 1
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("UNSTAKE", "alice", pool_id="p1", amount=1_000))
    assert e.value.code == "lock_period_not_expired"
    assert _position(st, "alice")["principal"] == 1_000

    st["time"] = expiry
    meta = _apply(st, tx("UNSTAKE", "alice", pool_id="p1", amount=1_000))
    assert meta["event"]["event"] == "unstaked"
    assert _position(st, "alice")["principal"] == 0
    assert balance_of(st, "alice") == 10_000
    assert balance_of(st, "vault:p1") == 0


def test_unstake_more_than_principal_is_insufficient_funds() -> None:
    st = _state(alice=10_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000, lock_duration=0))

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("UNSTAKE", "alice", pool_id="p1", amount=1_001))
    assert e.value.code == "insufficient_funds"


def test_partial_unstake_leaves_rate_and_lock_untouched() -> None:
    st = _state(alice=10_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000, lock_duration=6))
    before = dict(_position(st, "alice"))

    st["time"] = T0 + 6 * SECONDS_PER_MONTH + 10
    _apply(st, tx("UNSTAKE", "alice", pool_id="p1", amount=400))

    after = _position(st, "alice")
    assert after["principal"] == 600
    for k in ("effective_rate", "lock_duration", "stake_time", "last_claim_time", "cumulative_stake_for_tier"):
        assert after[k] == before[k]
    assert _pool(st)["total_staked"] == 600
    assert balance_of(st, "vault:p1") == 600
    assert audit_pool_totals(st) == []


def test_position_with_zero_principal_is_reusable() -> None:
    st = _state(alice=10_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000, lock_duration=0))
    _apply(st, tx("UNSTAKE", "alice", pool_id="p1", amount=1_000))
    assert _position(st, "alice")["principal"] == 0

    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=500, lock_duration=0))
    pos = _position(st, "alice")
    assert pos["principal"] == 500
    assert pos["cumulative_stake_for_tier"] == 1_500
    assert pos["rewards_forfeited"] == 0


def test_claim_immediately_has_no_rewards() -> None:
    st = _state(alice=10_000_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000_000, lock_duration=12))

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_REWARDS_CLAIM", "alice", pool_id="p1"))
    assert e.value.code == "no_rewards_to_claim"


def test_claim_one_year_mints_exact_reward() -> None:
    st = _state(alice=1_000_000)
    tx = _Signer()
    _init(st, tx, profile="token")
    _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="p1", tier="base", rate=15))
    # 100_000 is below the token profile's bronze multiplier cutoff
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=100_000, lock_duration=0))
    assert _position(st, "alice")["effective_rate"] == 15

    st["time"] = T0 + SECONDS_PER_YEAR
    meta = _apply(st, tx("STAKING_REWARDS_CLAIM", "alice", pool_id="p1"))
    assert meta["reward"] == 15_000
    assert meta["event"]["reward_to"] == "alice"

    assert balance_of(st, "alice") == 900_000 + 15_000
    assert _position(st, "alice")["last_claim_time"] == T0 + SECONDS_PER_YEAR
    assert _pool(st)["total_rewards_distributed"] == 15_000
    assert st["token"]["minted_total"] == 15_000
    # claims never touch principal or the vault
    assert balance_of(st, "vault:p1") == 100_000


def test_claim_to_reward_destination() -> None:
    st = _state(alice=1_000_000)
    tx = _Signer()
    _init(st, tx, profile="token")
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=100_000, lock_duration=0))
    st["time"] = T0 + SECONDS_PER_YEAR
    _apply(st, tx("STAKING_REWARDS_CLAIM", "alice", pool_id="p1", reward_to="treasury"))
    # 100_000 * 5% for a year
    assert balance_of(st, "treasury") == 5_000
    assert balance_of(st, "alice") == 900_000


def test_restake_forfeits_pending_reward_by_default() -> None:
    st = _state(alice=10_000_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000_000, lock_duration=0))

    st["time"] = T0 + SECONDS_PER_YEAR
    info = get_staking_info(st, "p1", "alice", now=st["time"])
    assert info is not None
    assert info["pending_reward"] == 50_000

    meta = _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000_000, lock_duration=3))
    assert meta["event"]["forfeited_reward"] == 50_000
    assert meta["event"]["restake_claimed_reward"] == 0

    pos = _position(st, "alice")
    assert pos["principal"] == 2_000_000
    assert pos["last_claim_time"] == T0 + SECONDS_PER_YEAR
    assert pos["stake_time"] == T0 + SECONDS_PER_YEAR
    assert pos["lock_duration"] == 3 * SECONDS_PER_MONTH
    assert pos["effective_rate"] == 6
    assert pos["rewards_forfeited"] == 50_000

    # Nothing was minted and the forfeited reward cannot be claimed any more.
    assert balance_of(st, "alice") == 8_000_000
    assert "token" not in st
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_REWARDS_CLAIM", "alice", pool_id="p1"))
    assert e.value.code == "no_rewards_to_claim"


def test_restake_claim_policy_pays_pending_reward() -> None:
    st = _state(alice=10_000_000)
    tx = _Signer()
    _init(st, tx, restake_policy="claim")
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000_000, lock_duration=0))

    # Immediate re-stake: nothing pending, not an error under this policy.
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1, lock_duration=0))

    st["time"] = T0 + SECONDS_PER_YEAR
    meta = _apply(st, tx("STAKE", "alice", pool_id="p1", amount=999_999, lock_duration=0))
    assert meta["event"]["restake_claimed_reward"] == 50_000
    assert meta["event"]["forfeited_reward"] == 0

    assert balance_of(st, "alice") == 10_000_000 - 2_000_000 + 50_000
    assert _position(st, "alice")["rewards_claimed"] == 50_000
    assert _pool(st)["total_rewards_distributed"] == 50_000


def test_float_amount_is_not_truncated() -> None:
    st = _state(alice=1_000)
    tx = _Signer()
    _init(st, tx)
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1.9, lock_duration=0.7))
    assert e.value.reason == "bad_amount"
    assert "alice" not in st["staking"]["positions"].get("p1", {})
    assert balance_of(st, "alice") == 1_000


def _gold_position_after_a_year(restake_policy: str):
    st = _state(alice=100_000_000_000)
    tx = _Signer()
    _init(st, tx, restake_policy=restake_policy)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=50_000_000_000, lock_duration=12))
    # gold base 15, then 200% for size and 200% for a 12 month lock
    assert _position(st, "alice")["effective_rate"] == 60
    st["time"] = T0 + SECONDS_PER_YEAR
    return st, tx


def test_restake_forfeit_succeeds_when_pending_reward_overflows() -> None:
    st, tx = _gold_position_after_a_year("forfeit")
    info = get_staking_info(st, "p1", "alice", now=st["time"])
    assert info["pending_reward_overflow"] is True

    meta = _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1, lock_duration=0))
    assert meta["event"]["forfeited_reward"] is None
    assert meta["event"]["forfeited_reward_overflow"] is True

    pos = _position(st, "alice")
    assert pos["principal"] == 50_000_000_001
    assert pos["last_claim_time"] == T0 + SECONDS_PER_YEAR
    assert pos["lock_duration"] == 0
    assert pos["rewards_forfeited"] == 0
    assert balance_of(st, "alice") == 50_000_000_000 - 1
    assert audit_pool_totals(st) == []


def test_restake_claim_policy_aborts_when_pending_reward_overflows() -> None:
    st, tx = _gold_position_after_a_year("claim")
    before = copy.deepcopy(st)

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1, lock_duration=0))
    assert e.value.code == "arithmetic_overflow"

    before["accounts"]["alice"]["nonce"] += 1
    assert st == before


def test_admin_updates_do_not_touch_frozen_rates() -> None:
    st = _state(alice=1_000_000_000, bob=1_000_000_000)
    tx = _Signer()
    _init(st, tx)

    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=500_000_000, lock_duration=0))
    # bronze base 5, stake multiplier 120
    assert _position(st, "alice")["effective_rate"] == 6

    meta = _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="p1", tier="bronze", rate=50))
    assert meta["event"]["old_rate"] == 5
    assert meta["event"]["new_rate"] == 50
    _apply(st, tx("STAKING_TIER_THRESHOLDS_SET", "admin", pool_id="p1", bronze=100, silver=200, gold=300_000_000))

    assert _position(st, "alice")["effective_rate"] == 6

    _apply(st, tx("STAKE", "bob", pool_id="p1", amount=500_000_000, lock_duration=0))
    # now gold under the new thresholds: base 15, stake multiplier 120
    assert _position(st, "bob")["effective_rate"] == 18
    assert _position(st, "alice")["effective_rate"] == 6


def test_admin_ops_require_authority() -> None:
    st = _state()
    tx = _Signer()
    _init(st, tx)
    before = copy.deepcopy(st)

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_TIER_THRESHOLDS_SET", "mallory", pool_id="p1", bronze=1, silver=2, gold=3))
    assert e.value.code == "unauthorized"

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_TIER_RATE_SET", "mallory", pool_id="p1", tier="gold", rate=99))
    assert e.value.code == "unauthorized"

    assert st["staking"] == before["staking"]


def test_explicit_authority_overrides_signer() -> None:
    st = _state()
    tx = _Signer()
    _init(st, tx, authority="ops")
    with pytest.raises(ApplyError):
        _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="p1", tier="gold", rate=20))
    _apply(st, tx("STAKING_TIER_RATE_SET", "ops", pool_id="p1", tier="gold", rate=20))
    assert _pool(st)["tier_base_rates"] == [5, 10, 20]


@pytest.mark.parametrize("triple", [(1, 1, 2), (3, 2, 1), (1, 2, 2), (0, 5, 4)])
def test_thresholds_must_be_strictly_ascending(triple) -> None:
    st = _state()
    tx = _Signer()
    _init(st, tx)
    b, s, g = triple
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_TIER_THRESHOLDS_SET", "admin", pool_id="p1", bronze=b, silver=s, gold=g))
    assert e.value.code == "invalid_payload"


def test_rate_set_validation_per_profile() -> None:
    st = _state()
    tx = _Signer()
    _init(st, tx, pool_id="pool")
    _init(st, tx, pool_id="tok", profile="token")

    with pytest.raises(ApplyError):
        _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="pool", tier="base", rate=5))
    with pytest.raises(ApplyError):
        _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="pool", tier="gold", rate=256))
    with pytest.raises(ApplyError):
        _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="tok", tier="gold", rate=5))

    _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="pool", tier="gold", rate=255))
    _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="tok", tier="base", rate=1_000))
    assert _pool(st, "tok")["staking_apr"] == 1_000


def test_rate_overflow_aborts_stake() -> None:
    st = _state(alice=1_000)
    tx = _Signer()
    _init(st, tx, profile="token")
    _apply(st, tx("STAKING_TIER_RATE_SET", "admin", pool_id="p1", tier="base", rate=U64_MAX))
    before = copy.deepcopy(st)

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1, lock_duration=0))
    assert e.value.code == "arithmetic_overflow"

    before["accounts"]["alice"]["nonce"] = 1
    assert st == before


def test_claim_overflow_aborts_claim() -> None:
    st = _state(alice=2**40)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=2**40, lock_duration=0))
    st["time"] = T0 + 2**30
    before = copy.deepcopy(st)

    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_REWARDS_CLAIM", "alice", pool_id="p1"))
    assert e.value.code == "arithmetic_overflow"

    before["accounts"]["alice"]["nonce"] += 1
    assert st == before

    info = get_staking_info(st, "p1", "alice", now=st["time"])
    assert info is not None
    assert info["pending_reward"] is None
    assert info["pending_reward_overflow"] is True


def test_legacy_tier_basis_classifies_against_zero() -> None:
    st = _state(alice=50_000_000_000, bob=50_000_000_000)
    tx = _Signer()
    _init(st, tx, pool_id="fixed")
    _init(st, tx, pool_id="legacy", tier_basis="legacy")

    _apply(st, tx("STAKE", "alice", pool_id="fixed", amount=50_000_000_000, lock_duration=0))
    _apply(st, tx("STAKE", "bob", pool_id="legacy", amount=50_000_000_000, lock_duration=0))

    # gold base 15 with the 200% multiplier
    assert _position(st, "alice", "fixed")["effective_rate"] == 30
    # below-bronze default 5, no multiplier
    assert _position(st, "bob", "legacy")["effective_rate"] == 5
    # the running total is still kept
    assert _position(st, "bob", "legacy")["cumulative_stake_for_tier"] == 50_000_000_000


def test_cumulative_tier_basis_counts_withdrawn_stake() -> None:
    st = _state(alice=1_000_000_000, bob=1_000_000_000)
    tx = _Signer()
    _init(st, tx, pool_id="cum", tier_basis="cumulative")
    _init(st, tx, pool_id="prin")

    for who, pid in (("alice", "cum"), ("bob", "prin")):
        _apply(st, tx("STAKE", who, pool_id=pid, amount=400_000_000, lock_duration=0))
        _apply(st, tx("UNSTAKE", who, pool_id=pid, amount=400_000_000))
        _apply(st, tx("STAKE", who, pool_id=pid, amount=200_000_000, lock_duration=0))

    # cumulative 600M reaches bronze: base 5 * 120%
    assert _position(st, "alice", "cum")["effective_rate"] == 6
    # principal 200M is below bronze
    assert _position(st, "bob", "prin")["effective_rate"] == 5


def test_level_update_emits_only_on_change() -> None:
    st = _state(alice=10_000_000_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=5_000_000_000, lock_duration=0))
    assert _position(st, "alice")["level"] == "bronze"

    meta = _apply(st, tx("STAKING_LEVEL_UPDATE", "alice", pool_id="p1"))
    assert meta["changed"] is True
    assert meta["level"] == "silver"
    assert meta["event"]["old_level"] == "bronze"
    assert meta["event"]["new_level"] == "silver"

    meta = _apply(st, tx("STAKING_LEVEL_UPDATE", "alice", pool_id="p1"))
    assert meta["changed"] is False
    assert "event" not in meta


def test_level_update_without_position_is_not_found() -> None:
    st = _state()
    tx = _Signer()
    _init(st, tx)
    with pytest.raises(ApplyError) as e:
        _apply(st, tx("STAKING_LEVEL_UPDATE", "alice", pool_id="p1"))
    assert e.value.code == "not_found"


def test_unknown_tx_type_fails_closed() -> None:
    with pytest.raises(ApplyError) as e:
        apply_tx({}, {"tx_type": "MARKETPLACE_LIST", "signer": "alice", "nonce": 1, "payload": {}})
    assert e.value.code == "tx_unimplemented"
    assert e.value.reason == "tx_type_not_implemented"


def test_missing_chain_time_is_invalid_state() -> None:
    with pytest.raises(ApplyError) as e:
        apply_tx({}, {"tx_type": "STAKING_POOL_INIT", "signer": "admin", "nonce": 1, "payload": {"pool_id": "p1"}})
    assert e.value.code == "invalid_state"
    assert e.value.reason == "missing_chain_time"


def test_system_envelopes_are_refused() -> None:
    st = _state()
    with pytest.raises(ApplyError) as e:
        apply_tx(st, {"tx_type": "STAKING_POOL_INIT", "signer": "admin", "nonce": 1, "payload": {"pool_id": "p1"}, "system": True})
    assert e.value.code == "forbidden"


def test_read_views() -> None:
    st = _state(alice=10_000)
    tx = _Signer()
    _init(st, tx)
    _apply(st, tx("STAKE", "alice", pool_id="p1", amount=1_000, lock_duration=3))

    pool = get_pool_info(st, "p1")
    assert pool is not None
    assert pool["vault_balance"] == 1_000
    assert get_pool_info(st, "missing") is None

    info = get_staking_info(st, "p1", "alice", now=T0 + 10)
    assert info is not None
    assert info["principal"] == 1_000
    assert info["tier"] == "bronze"
    assert info["unlock_eligible"] is False
    assert info["lock_remaining"] == 3 * SECONDS_PER_MONTH - 10
    assert info["profile"] == "pool"
    assert get_staking_info(st, "p1", "bob", now=T0) is None

    # future last_claim_time reads as zero pending
    assert get_staking_info(st, "p1", "alice", now=T0 - 5)["pending_reward"] == 0


def test_view_tier_follows_pool_tier_basis() -> None:
    st = _state(alice=10_000_000_000, bob=10_000_000_000)
    tx = _Signer()
    _init(st, tx, pool_id="prin")
    _init(st, tx, pool_id="cum", tier_basis="cumulative")
    _init(st, tx, pool_id="legacy", tier_basis="legacy")

    for who, pid in (("alice", "prin"), ("bob", "cum")):
        _apply(st, tx("STAKE", who, pool_id=pid, amount=5_000_000_000, lock_duration=0))
        _apply(st, tx("UNSTAKE", who, pool_id=pid, amount=4_000_000_000))
    _apply(st, tx("STAKE", "alice", pool_id="legacy", amount=5_000_000_000, lock_duration=0))

    # 1B principal left after withdrawing 4B of a 5B stake
    assert get_staking_info(st, "prin", "alice", now=T0)["tier"] == "bronze"
    # every stake ever made still counts
    assert get_staking_info(st, "cum", "bob", now=T0)["tier"] == "silver"
    # classified against zero, same as the frozen rate
    legacy = get_staking_info(st, "legacy", "alice", now=T0)
    assert legacy["tier"] == "bronze"
    assert legacy["effective_rate"] == 5
