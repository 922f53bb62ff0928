# src/tierstake/runtime/apply/staking.py
from __future__ import annotations

"""
Staking domain apply semantics.

Deterministic state transitions for:
- pool initialization
- stake / unstake (principal moves through the pool vault account)
- reward claims (minted through the token ledger)
- admin updates of pool thresholds and base rates
- level recomputation

Every failure raises an ApplyError subclass. Callers are expected to run
these through apply_tx_atomic so a failed op leaves no trace in state.
"""

from typing import Any, Dict, Optional, Set

from tierstake.ledger.constants import TIER_NAMES, U64_MAX, vault_account_id
from tierstake.runtime.errors import ApplyError
from tierstake.runtime.store import StateRecordStore
from tierstake.runtime.token_ledger import StateTokenLedger, TokenLedger
from tierstake.runtime.tx_admission_types import TxEnvelope
from tierstake.staking.accrual import accrue, pending_reward
from tierstake.staking.arith import I64, checked_add, checked_sub
from tierstake.staking.errors import (
    ArithmeticOverflow,
    InsufficientFunds,
    NoRewardsToClaim,
    StakingApplyError,
    Unauthorized,
)
from tierstake.staking.lock import require_unlocked
from tierstake.staking.profiles import RESTAKE_POLICIES, TIER_BASES, StakingProfile, get_profile
from tierstake.staking.rates import resolve_effective_rate, tier_basis_amount
from tierstake.staking.records import PoolAggregate, StakePosition
from tierstake.staking.tiers import classify_pool_tier

Json = Dict[str, Any]


def _as_dict(x: Any) -> Json:
    return x if isinstance(x, dict) else {}


def _as_str(x: Any) -> str:
    return x.strip() if isinstance(x, str) else ""


def _chain_now(state: Json) -> int:
    t = state.get("time")
    if isinstance(t, bool) or not isinstance(t, int):
        raise StakingApplyError("invalid_state", "missing_chain_time", {"time": t})
    return int(t)


def _require_uint(payload: Json, key: str, *, upper: int = U64_MAX, positive: bool = False) -> int:
    raw = payload.get(key)
    if raw is None:
        raise StakingApplyError("invalid_payload", f"missing_{key}", {"missing": key})
    if isinstance(raw, (bool, float)):
        raise StakingApplyError("invalid_payload", f"bad_{key}", {key: raw})
    try:
        v = int(raw)
    except (TypeError, ValueError):
        raise StakingApplyError("invalid_payload", f"bad_{key}", {key: raw})
    if v < 0 or v > int(upper) or (positive and v == 0):
        raise StakingApplyError("invalid_payload", f"bad_{key}", {key: raw, "max": int(upper)})
    return v


def _require_pool_id(payload: Json) -> str:
    pool_id = _as_str(payload.get("pool_id"))
    if not pool_id:
        raise StakingApplyError("invalid_payload", "missing_pool_id", {"missing": "pool_id"})
    return pool_id


def _require_pool(store: StateRecordStore, payload: Json) -> PoolAggregate:
    pool_id = _require_pool_id(payload)
    pool = store.get_pool(pool_id)
    if pool is None:
        raise StakingApplyError("not_found", "pool_missing", {"pool_id": pool_id})
    return pool


def _require_position(store: StateRecordStore, pool: PoolAggregate, staker: str) -> StakePosition:
    pos = store.get_position(pool.pool_id, staker)
    if pos is None:
        raise StakingApplyError("not_found", "position_missing", {"pool_id": pool.pool_id, "staker": staker})
    return pos


def _require_authority(pool: PoolAggregate, env: TxEnvelope) -> None:
    if _as_str(env.signer) != pool.authority:
        raise Unauthorized(details={"pool_id": pool.pool_id, "signer": env.signer})


def _signer(env: TxEnvelope) -> str:
    s = _as_str(env.signer)
    if not s:
        raise StakingApplyError("invalid_payload", "missing_signer", {"tx_type": env.tx_type})
    return s


def _event(name: str, pool: PoolAggregate, actor: str, ts: int, **fields: Any) -> Json:
    ev: Json = {"event": name, "pool_id": pool.pool_id, "actor": actor, "ts": int(ts)}
    ev.update(fields)
    return ev


def _apply_pool_init(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool_id = _require_pool_id(payload)
    try:
        profile: StakingProfile = get_profile(payload.get("profile") or "pool")
    except KeyError:
        raise StakingApplyError("invalid_payload", "unknown_profile", {"profile": payload.get("profile")})

    authority = _as_str(payload.get("authority")) or _signer(env)

    tier_basis = _as_str(payload.get("tier_basis")) or "principal"
    if tier_basis not in TIER_BASES:
        raise StakingApplyError("invalid_payload", "bad_tier_basis", {"tier_basis": tier_basis, "allowed": list(TIER_BASES)})

    restake_policy = _as_str(payload.get("restake_policy")) or "forfeit"
    if restake_policy not in RESTAKE_POLICIES:
        raise StakingApplyError(
            "invalid_payload",
            "bad_restake_policy",
            {"restake_policy": restake_policy, "allowed": list(RESTAKE_POLICIES)},
        )

    pool = PoolAggregate(
        pool_id=pool_id,
        profile=profile.name,
        authority=authority,
        tier_thresholds=profile.default_thresholds,
        tier_base_rates=profile.default_tier_rates,
        staking_apr=profile.default_staking_apr,
        tier_basis=tier_basis,
        restake_policy=restake_policy,
        created_at=now,
    )
    store.create_pool(pool)

    return {
        "applied": "STAKING_POOL_INIT",
        "pool_id": pool_id,
        "event": _event(
            "pool_initialized",
            pool,
            _signer(env),
            now,
            profile=profile.name,
            authority=authority,
            tier_thresholds=list(pool.tier_thresholds),
            tier_base_rates=list(pool.tier_base_rates),
            staking_apr=int(pool.staking_apr),
        ),
    }


def _apply_stake(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    profile = get_profile(pool.profile)
    staker = _signer(env)

    amount = _require_uint(payload, "amount", positive=True)
    lock_input = _require_uint(payload, "lock_duration", upper=profile.max_lock_input)
    lock_seconds = profile.lock_seconds(lock_input)
    # Reject locks whose expiry cannot be represented before anything moves.
    checked_add(now, lock_seconds, I64)

    reward_to = _as_str(payload.get("reward_to")) or staker

    position = store.get_position(pool.pool_id, staker)
    created = position is None
    if position is None:
        position = StakePosition(pool_id=pool.pool_id, owner=staker)

    ledger.transfer(state, staker, vault_account_id(pool.pool_id), amount)

    # Re-staking resets last_claim_time below, so whatever accrued on the
    # old principal is either paid out here or dropped.
    forfeited: Optional[int] = 0
    restake_claimed = 0
    if not created and position.principal > 0:
        if pool.restake_policy == "claim":
            pending = accrue(position, now).reward
            if pending > 0:
                ledger.mint(state, reward_to, pending)
                pool.total_rewards_distributed = checked_add(pool.total_rewards_distributed, pending)
                position.rewards_claimed = checked_add(position.rewards_claimed, pending)
                restake_claimed = pending
        else:
            # Nothing is paid out on this path, so an unrepresentable pending
            # amount must not block the stake.
            try:
                forfeited = pending_reward(position, now)
            except ArithmeticOverflow:
                forfeited = None
            if forfeited:
                # Statistic only; saturates instead of failing.
                position.rewards_forfeited = min(U64_MAX, position.rewards_forfeited + forfeited)

    position.principal = checked_add(position.principal, amount)
    position.cumulative_stake_for_tier = checked_add(position.cumulative_stake_for_tier, amount)

    quote = resolve_effective_rate(
        profile,
        pool,
        tier_amount=tier_basis_amount(pool, position),
        lock_duration_seconds=lock_seconds,
    )

    position.effective_rate = quote.effective_rate
    position.lock_duration = lock_seconds
    position.lock_input = lock_input
    position.stake_time = now
    position.last_claim_time = now

    pool.total_staked = checked_add(pool.total_staked, amount)

    if created:
        store.create_position(position)
    else:
        store.put_position(position)
    store.put_pool(pool)

    return {
        "applied": "STAKE",
        "pool_id": pool.pool_id,
        "staker": staker,
        "amount": amount,
        "effective_rate": quote.effective_rate,
        "event": _event(
            "staked",
            pool,
            staker,
            now,
            amount=amount,
            principal=position.principal,
            lock_duration=lock_seconds,
            lock_input=lock_input,
            effective_rate=quote.effective_rate,
            base_rate=quote.base_rate,
            pool_tier=quote.pool_tier,
            stake_multiplier=quote.stake_multiplier,
            lock_multiplier=quote.lock_multiplier,
            forfeited_reward=forfeited,
            forfeited_reward_overflow=forfeited is None,
            restake_claimed_reward=restake_claimed,
            total_staked=pool.total_staked,
        ),
    }


def _apply_unstake(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    staker = _signer(env)
    amount = _require_uint(payload, "amount", positive=True)
    position = _require_position(store, pool, staker)

    if amount > position.principal:
        raise InsufficientFunds(details={"amount": amount, "principal": position.principal})
    require_unlocked(position, now)

    ledger.transfer(state, vault_account_id(pool.pool_id), staker, amount)

    position.principal = checked_sub(position.principal, amount)
    pool.total_staked = checked_sub(pool.total_staked, amount)

    store.put_position(position)
    store.put_pool(pool)

    return {
        "applied": "UNSTAKE",
        "pool_id": pool.pool_id,
        "staker": staker,
        "amount": amount,
        "event": _event(
            "unstaked",
            pool,
            staker,
            now,
            amount=amount,
            principal=position.principal,
            effective_rate=position.effective_rate,
            total_staked=pool.total_staked,
        ),
    }


def _apply_rewards_claim(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    staker = _signer(env)
    position = _require_position(store, pool, staker)
    reward_to = _as_str(payload.get("reward_to")) or staker

    acc = accrue(position, now)
    if acc.reward == 0:
        raise NoRewardsToClaim(
            details={
                "elapsed": acc.elapsed,
                "principal": position.principal,
                "effective_rate": position.effective_rate,
            }
        )

    ledger.mint(state, reward_to, acc.reward)

    position.last_claim_time = now
    position.rewards_claimed = checked_add(position.rewards_claimed, acc.reward)
    pool.total_rewards_distributed = checked_add(pool.total_rewards_distributed, acc.reward)

    store.put_position(position)
    store.put_pool(pool)

    return {
        "applied": "STAKING_REWARDS_CLAIM",
        "pool_id": pool.pool_id,
        "staker": staker,
        "reward": acc.reward,
        "event": _event(
            "rewards_claimed",
            pool,
            staker,
            now,
            reward=acc.reward,
            reward_to=reward_to,
            elapsed=acc.elapsed,
            effective_rate=position.effective_rate,
            total_rewards_distributed=pool.total_rewards_distributed,
        ),
    }


def _apply_tier_thresholds_set(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    _require_authority(pool, env)

    bronze = _require_uint(payload, "bronze")
    silver = _require_uint(payload, "silver")
    gold = _require_uint(payload, "gold")
    if not (bronze < silver < gold):
        raise StakingApplyError(
            "invalid_payload",
            "thresholds_not_ascending",
            {"bronze": bronze, "silver": silver, "gold": gold},
        )

    old = list(pool.tier_thresholds)
    pool.tier_thresholds = (bronze, silver, gold)
    store.put_pool(pool)

    return {
        "applied": "STAKING_TIER_THRESHOLDS_SET",
        "pool_id": pool.pool_id,
        "event": _event(
            "tier_thresholds_updated",
            pool,
            _signer(env),
            now,
            old_thresholds=old,
            tier_thresholds=[bronze, silver, gold],
        ),
    }


def _apply_tier_rate_set(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    _require_authority(pool, env)
    profile = get_profile(pool.profile)

    tier = _as_str(payload.get("tier")).lower()
    allowed = TIER_NAMES if profile.tiered_base_rate else ("base",)
    if tier not in allowed:
        raise StakingApplyError(
            "invalid_payload",
            "bad_tier",
            {"tier": payload.get("tier"), "allowed": list(allowed), "profile": profile.name},
        )
    rate = _require_uint(payload, "rate", upper=profile.max_base_rate)

    if tier == "base":
        old_rate = int(pool.staking_apr)
        pool.staking_apr = rate
    else:
        idx = TIER_NAMES.index(tier)
        rates = list(pool.tier_base_rates)
        old_rate = int(rates[idx])
        rates[idx] = rate
        pool.tier_base_rates = (rates[0], rates[1], rates[2])
    store.put_pool(pool)

    return {
        "applied": "STAKING_TIER_RATE_SET",
        "pool_id": pool.pool_id,
        "tier": tier,
        "rate": rate,
        "event": _event("tier_rate_updated", pool, _signer(env), now, tier=tier, old_rate=old_rate, new_rate=rate),
    }


def _apply_level_update(state: Json, env: TxEnvelope, ledger: TokenLedger) -> Json:
    payload = _as_dict(env.payload)
    now = _chain_now(state)
    store = StateRecordStore(state)

    pool = _require_pool(store, payload)
    staker = _signer(env)
    position = _require_position(store, pool, staker)

    old_level = position.level
    new_level = classify_pool_tier(position.cumulative_stake_for_tier, pool.tier_thresholds)
    if new_level == old_level:
        return {"applied": "STAKING_LEVEL_UPDATE", "pool_id": pool.pool_id, "level": old_level, "changed": False}

    position.level = new_level
    store.put_position(position)

    return {
        "applied": "STAKING_LEVEL_UPDATE",
        "pool_id": pool.pool_id,
        "level": new_level,
        "changed": True,
        "event": _event("staking_level_updated", pool, staker, now, old_level=old_level, new_level=new_level),
    }


_HANDLERS = {
    "STAKING_POOL_INIT": _apply_pool_init,
    "STAKE": _apply_stake,
    "UNSTAKE": _apply_unstake,
    "STAKING_REWARDS_CLAIM": _apply_rewards_claim,
    "STAKING_TIER_THRESHOLDS_SET": _apply_tier_thresholds_set,
    "STAKING_TIER_RATE_SET": _apply_tier_rate_set,
    "STAKING_LEVEL_UPDATE": _apply_level_update,
}

STAKING_TX_TYPES: Set[str] = set(_HANDLERS.keys())


def apply_staking(state: Json, env: TxEnvelope, *, ledger: Optional[TokenLedger] = None) -> Optional[Json]:
    """Apply Staking txs. Returns meta dict if handled; otherwise None."""
    t = str(env.tx_type or "").strip().upper()
    fn = _HANDLERS.get(t)
    if fn is None:
        return None
    if bool(env.system):
        raise ApplyError("forbidden", "system_tx_not_allowed", {"tx_type": t})
    return fn(state, env, ledger or StateTokenLedger())
