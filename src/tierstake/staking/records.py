# src/tierstake/staking/records.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_triple(v: Any, default: Tuple[int, int, int]) -> Tuple[int, int, int]:
    if isinstance(v, (list, tuple)) and len(v) == 3:
        return (_as_int(v[0]), _as_int(v[1]), _as_int(v[2]))
    return tuple(int(x) for x in default)  # type: ignore[return-value]


@dataclass
class PoolAggregate:
    """Singleton per pool. Created by STAKING_POOL_INIT, never destroyed."""

    pool_id: str
    profile: str
    authority: str
    tier_thresholds: Tuple[int, int, int]
    tier_base_rates: Tuple[int, int, int]
    staking_apr: int
    tier_basis: str = "principal"
    restake_policy: str = "forfeit"
    total_staked: int = 0
    total_rewards_distributed: int = 0
    created_at: int = 0

    def tier_rate(self, tier: str) -> int:
        idx = {"bronze": 0, "silver": 1, "gold": 2}[tier]
        return int(self.tier_base_rates[idx])

    @staticmethod
    def from_json(j: Json) -> "PoolAggregate":
        return PoolAggregate(
            pool_id=str(j.get("pool_id", "")),
            profile=str(j.get("profile", "pool")),
            authority=str(j.get("authority", "")),
            tier_thresholds=_as_triple(j.get("tier_thresholds"), (0, 0, 0)),
            tier_base_rates=_as_triple(j.get("tier_base_rates"), (0, 0, 0)),
            staking_apr=_as_int(j.get("staking_apr"), 0),
            tier_basis=str(j.get("tier_basis") or "principal"),
            restake_policy=str(j.get("restake_policy") or "forfeit"),
            total_staked=_as_int(j.get("total_staked"), 0),
            total_rewards_distributed=_as_int(j.get("total_rewards_distributed"), 0),
            created_at=_as_int(j.get("created_at"), 0),
        )

    def to_json(self) -> Json:
        return {
            "pool_id": self.pool_id,
            "profile": self.profile,
            "authority": self.authority,
            "tier_thresholds": list(self.tier_thresholds),
            "tier_base_rates": list(self.tier_base_rates),
            "staking_apr": int(self.staking_apr),
            "tier_basis": self.tier_basis,
            "restake_policy": self.restake_policy,
            "total_staked": int(self.total_staked),
            "total_rewards_distributed": int(self.total_rewards_distributed),
            "created_at": int(self.created_at),
        }


@dataclass
class StakePosition:
    """One per (pool, staker).

    effective_rate is written only by a stake call. Claims and unstakes
    read it but never touch it, and neither do pool config updates.
    """

    pool_id: str
    owner: str
    principal: int = 0
    lock_duration: int = 0
    lock_input: int = 0
    stake_time: int = 0
    last_claim_time: int = 0
    effective_rate: int = 0
    cumulative_stake_for_tier: int = 0
    level: str = "bronze"
    rewards_claimed: int = 0
    rewards_forfeited: int = 0

    @staticmethod
    def from_json(j: Json) -> "StakePosition":
        return StakePosition(
            pool_id=str(j.get("pool_id", "")),
            owner=str(j.get("owner", "")),
            principal=_as_int(j.get("principal"), 0),
            lock_duration=_as_int(j.get("lock_duration"), 0),
            lock_input=_as_int(j.get("lock_input"), 0),
            stake_time=_as_int(j.get("stake_time"), 0),
            last_claim_time=_as_int(j.get("last_claim_time"), 0),
            effective_rate=_as_int(j.get("effective_rate"), 0),
            cumulative_stake_for_tier=_as_int(j.get("cumulative_stake_for_tier"), 0),
            level=str(j.get("level") or "bronze"),
            rewards_claimed=_as_int(j.get("rewards_claimed"), 0),
            rewards_forfeited=_as_int(j.get("rewards_forfeited"), 0),
        )

    def to_json(self) -> Json:
        return {
            "pool_id": self.pool_id,
            "owner": self.owner,
            "principal": int(self.principal),
            "lock_duration": int(self.lock_duration),
            "lock_input": int(self.lock_input),
            "stake_time": int(self.stake_time),
            "last_claim_time": int(self.last_claim_time),
            "effective_rate": int(self.effective_rate),
            "cumulative_stake_for_tier": int(self.cumulative_stake_for_tier),
            "level": self.level,
            "rewards_claimed": int(self.rewards_claimed),
            "rewards_forfeited": int(self.rewards_forfeited),
        }
