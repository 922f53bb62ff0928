# src/tierstake/staking/profiles.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from tierstake.ledger.constants import SECONDS_PER_DAY, SECONDS_PER_MONTH, U8_MAX, U64_MAX

TIER_BASES = ("principal", "cumulative", "legacy")
RESTAKE_POLICIES = ("forfeit", "claim")


@dataclass(frozen=True)
class StakingProfile:
    """Parameters that distinguish the two deployed flavours of the engine.

    The ``pool`` profile is the tiered staking pool: lock input is given in
    months and the base rate comes from the pool's own tier table. The
    ``token`` profile is the token program's built-in staking: lock input is
    given in seconds and the base rate is the pool's flat ``staking_apr``.
    """

    name: str
    lock_unit_seconds: int
    max_lock_input: int

    # (gold, silver, bronze) cutoffs, evaluated top-down, inclusive.
    stake_multiplier_cutoffs: Tuple[int, int, int]
    lock_multiplier_cutoffs: Tuple[int, int, int]

    tiered_base_rate: bool
    max_base_rate: int

    default_thresholds: Tuple[int, int, int] = (500_000_000, 5_000_000_000, 50_000_000_000)
    default_tier_rates: Tuple[int, int, int] = (5, 10, 15)
    default_staking_apr: int = 5
    below_bronze_base_rate: int = 5

    def lock_seconds(self, lock_input: int) -> int:
        return int(lock_input) * int(self.lock_unit_seconds)


POOL_PROFILE = StakingProfile(
    name="pool",
    lock_unit_seconds=SECONDS_PER_MONTH,
    max_lock_input=U8_MAX,
    stake_multiplier_cutoffs=(50_000_000_000, 5_000_000_000, 500_000_000),
    lock_multiplier_cutoffs=(12 * SECONDS_PER_MONTH, 6 * SECONDS_PER_MONTH, 3 * SECONDS_PER_MONTH),
    tiered_base_rate=True,
    max_base_rate=U8_MAX,
)

TOKEN_PROFILE = StakingProfile(
    name="token",
    lock_unit_seconds=1,
    max_lock_input=U64_MAX,
    stake_multiplier_cutoffs=(50_000_000, 5_000_000, 500_000),
    lock_multiplier_cutoffs=(365 * SECONDS_PER_DAY, 180 * SECONDS_PER_DAY, 90 * SECONDS_PER_DAY),
    tiered_base_rate=False,
    max_base_rate=U64_MAX,
)

PROFILES: Dict[str, StakingProfile] = {p.name: p for p in (POOL_PROFILE, TOKEN_PROFILE)}


def get_profile(name: str) -> StakingProfile:
    p = PROFILES.get(str(name or "").strip().lower())
    if p is None:
        raise KeyError(name)
    return p
