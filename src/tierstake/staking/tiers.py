# src/tierstake/staking/tiers.py
from __future__ import annotations

from typing import Tuple

from tierstake.staking.profiles import StakingProfile

# Multipliers are percentages: 100 means "no bonus".
NO_BONUS = 100
MULTIPLIER_STEPS: Tuple[int, int, int] = (200, 150, 120)


def _top_down(value: int, cutoffs: Tuple[int, int, int]) -> int:
    """Return the multiplier of the highest cutoff that value reaches (inclusive)."""
    v = int(value)
    for cutoff, pct in zip(cutoffs, MULTIPLIER_STEPS):
        if v >= int(cutoff):
            return pct
    return NO_BONUS


def stake_tier_multiplier(profile: StakingProfile, total_staked_for_account: int) -> int:
    """Gold/silver/bronze stake-size multiplier. Plateaus at 200 above gold."""
    return _top_down(total_staked_for_account, profile.stake_multiplier_cutoffs)


def lock_time_multiplier(profile: StakingProfile, lock_duration_seconds: int) -> int:
    """Lock-duration multiplier over the profile's cutoffs, in seconds."""
    return _top_down(lock_duration_seconds, profile.lock_multiplier_cutoffs)


def classify_pool_tier(amount: int, thresholds: Tuple[int, int, int]) -> str:
    """Pool-level tier for a stake amount.

    thresholds are (bronze, silver, gold). Anything below bronze still
    classifies as bronze; callers that need "below bronze" check it directly.
    """
    bronze, silver, gold = (int(t) for t in thresholds)
    a = int(amount)
    if a >= gold:
        return "gold"
    if a >= silver:
        return "silver"
    return "bronze"


def below_bronze(amount: int, thresholds: Tuple[int, int, int]) -> bool:
    return int(amount) < int(thresholds[0])
