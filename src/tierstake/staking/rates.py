# src/tierstake/staking/rates.py
from __future__ import annotations

from dataclasses import dataclass

from tierstake.ledger.constants import PERCENT
from tierstake.staking.arith import checked_div, checked_mul
from tierstake.staking.profiles import StakingProfile
from tierstake.staking.records import PoolAggregate, StakePosition
from tierstake.staking.tiers import below_bronze, classify_pool_tier, lock_time_multiplier, stake_tier_multiplier


@dataclass(frozen=True)
class RateQuote:
    """Everything that went into a frozen effective rate."""

    base_rate: int
    pool_tier: str
    stake_multiplier: int
    lock_multiplier: int
    effective_rate: int


def tier_basis_amount(pool: PoolAggregate, position: StakePosition) -> int:
    """Amount used to classify multiplier and base-rate tiers.

    "legacy" always classifies against zero, matching older deployed pools
    whose per-account running total was never incremented.
    """
    if pool.tier_basis == "cumulative":
        return int(position.cumulative_stake_for_tier)
    if pool.tier_basis == "legacy":
        return 0
    return int(position.principal)


def base_rate(profile: StakingProfile, pool: PoolAggregate, tier_amount: int) -> tuple[int, str]:
    """Return (base_rate, pool_tier) for a classification amount.

    The token profile has no tiered base: it always uses the pool's flat
    staking_apr. The pool profile looks the amount up in the pool's own
    thresholds and falls back to the profile's below-bronze default.
    """
    tier = classify_pool_tier(tier_amount, pool.tier_thresholds)
    if not profile.tiered_base_rate:
        return int(pool.staking_apr), tier
    if below_bronze(tier_amount, pool.tier_thresholds):
        return int(profile.below_bronze_base_rate), tier
    return int(pool.tier_rate(tier)), tier


def resolve_effective_rate(
    profile: StakingProfile,
    pool: PoolAggregate,
    *,
    tier_amount: int,
    lock_duration_seconds: int,
) -> RateQuote:
    """Compute the annualized rate to freeze into a position.

    Two sequential multiply-then-truncate steps: (base * stake_mult / 100)
    then (* lock_mult / 100). Collapsing them into one expression changes
    rounding and must not be done.
    """
    base, tier = base_rate(profile, pool, tier_amount)
    stake_mult = stake_tier_multiplier(profile, tier_amount)
    lock_mult = lock_time_multiplier(profile, lock_duration_seconds)

    rate = checked_div(checked_mul(base, stake_mult), PERCENT)
    rate = checked_div(checked_mul(rate, lock_mult), PERCENT)

    return RateQuote(
        base_rate=base,
        pool_tier=tier,
        stake_multiplier=stake_mult,
        lock_multiplier=lock_mult,
        effective_rate=rate,
    )
