# src/tierstake/ledger/staking_view.py
from __future__ import annotations

"""Read-only projections of staking records.

Nothing here mutates state and nothing here raises for a broken clock: a
last_claim_time in the future reports a pending reward of zero.
"""

from typing import Any, Dict, Optional

from tierstake.ledger.constants import vault_account_id
from tierstake.runtime.store import StateRecordStore
from tierstake.runtime.token_ledger import balance_of
from tierstake.staking.accrual import pending_reward
from tierstake.staking.errors import ArithmeticOverflow
from tierstake.staking.lock import is_unlock_eligible, lock_remaining, unlock_time
from tierstake.staking.rates import tier_basis_amount
from tierstake.staking.tiers import classify_pool_tier

Json = Dict[str, Any]


def get_pool_info(state: Json, pool_id: str) -> Optional[Json]:
    pool = StateRecordStore(state).get_pool(pool_id)
    if pool is None:
        return None
    out = pool.to_json()
    out["vault_account"] = vault_account_id(pool_id)
    out["vault_balance"] = balance_of(state, vault_account_id(pool_id))
    return out


def get_staking_info(state: Json, pool_id: str, staker: str, *, now: int) -> Optional[Json]:
    """Current principal, rate, tier, pending reward estimate and remaining lock time.

    `tier` is classified over the same amount the pool uses when it freezes
    a rate (its tier_basis) against the current thresholds. `level` is the
    stored label from the last level update.

    Returns None when the pool or the position does not exist.
    """
    store = StateRecordStore(state)
    pool = store.get_pool(pool_id)
    if pool is None:
        return None
    pos = store.get_position(pool_id, staker)
    if pos is None:
        return None

    try:
        pending = pending_reward(pos, now)
    except ArithmeticOverflow:
        # The claim itself would fail the same way; report it instead of a number.
        pending = None

    return {
        "pool_id": pool_id,
        "staker": staker,
        "profile": pool.profile,
        "principal": int(pos.principal),
        "effective_rate": int(pos.effective_rate),
        "tier": classify_pool_tier(tier_basis_amount(pool, pos), pool.tier_thresholds),
        "level": pos.level,
        "pending_reward": pending,
        "pending_reward_overflow": pending is None,
        "lock_duration": int(pos.lock_duration),
        "lock_input": int(pos.lock_input),
        "stake_time": int(pos.stake_time),
        "unlock_time": unlock_time(pos),
        "lock_remaining": lock_remaining(pos, now),
        "unlock_eligible": is_unlock_eligible(pos, now),
        "last_claim_time": int(pos.last_claim_time),
        "cumulative_stake_for_tier": int(pos.cumulative_stake_for_tier),
        "rewards_claimed": int(pos.rewards_claimed),
        "rewards_forfeited": int(pos.rewards_forfeited),
        "now": int(now),
    }
