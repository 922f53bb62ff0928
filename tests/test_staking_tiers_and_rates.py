from __future__ import annotations

import pytest

from tierstake.ledger.constants import SECONDS_PER_DAY, SECONDS_PER_MONTH
from tierstake.staking.arith import checked_div, checked_mul
from tierstake.staking.profiles import POOL_PROFILE, TOKEN_PROFILE, get_profile
from tierstake.staking.rates import base_rate, resolve_effective_rate
from tierstake.staking.records import PoolAggregate
from tierstake.staking.tiers import classify_pool_tier, lock_time_multiplier, stake_tier_multiplier


def _pool(profile: str = "pool", **kw) -> PoolAggregate:
    p = get_profile(profile)
    base = dict(
        pool_id="p1",
        profile=p.name,
        authority="admin",
        tier_thresholds=p.default_thresholds,
        tier_base_rates=p.default_tier_rates,
        staking_apr=p.default_staking_apr,
    )
    base.update(kw)
    return PoolAggregate(**base)


@pytest.mark.parametrize("amount", [50_000_000_000, 50_000_000_001, 10**15, 2**63])
def test_stake_multiplier_plateaus_at_gold(amount: int) -> None:
    assert stake_tier_multiplier(POOL_PROFILE, amount) == 200


def test_stake_multiplier_thresholds_are_inclusive() -> None:
    assert stake_tier_multiplier(POOL_PROFILE, 5_000_000_000) == 150
    assert stake_tier_multiplier(POOL_PROFILE, 5_000_000_000 - 1) == 120
    assert stake_tier_multiplier(POOL_PROFILE, 500_000_000) == 120
    assert stake_tier_multiplier(POOL_PROFILE, 500_000_000 - 1) == 100
    assert stake_tier_multiplier(POOL_PROFILE, 0) == 100

    assert stake_tier_multiplier(TOKEN_PROFILE, 50_000_000) == 200
    assert stake_tier_multiplier(TOKEN_PROFILE, 5_000_000) == 150
    assert stake_tier_multiplier(TOKEN_PROFILE, 500_000) == 120
    assert stake_tier_multiplier(TOKEN_PROFILE, 499_999) == 100


def test_lock_multiplier_uses_fixed_30_day_months() -> None:
    assert lock_time_multiplier(POOL_PROFILE, 12 * SECONDS_PER_MONTH) == 200
    # 360 days, not a calendar year
    assert lock_time_multiplier(POOL_PROFILE, 360 * SECONDS_PER_DAY) == 200
    assert lock_time_multiplier(POOL_PROFILE, 12 * SECONDS_PER_MONTH - 1) == 150
    assert lock_time_multiplier(POOL_PROFILE, 6 * SECONDS_PER_MONTH) == 150
    assert lock_time_multiplier(POOL_PROFILE, 3 * SECONDS_PER_MONTH) == 120
    assert lock_time_multiplier(POOL_PROFILE, 3 * SECONDS_PER_MONTH - 1) == 100

    assert POOL_PROFILE.lock_seconds(12) == 12 * 30 * SECONDS_PER_DAY
    assert TOKEN_PROFILE.lock_seconds(12) == 12


def test_token_lock_cutoffs_in_days() -> None:
    assert lock_time_multiplier(TOKEN_PROFILE, 365 * SECONDS_PER_DAY) == 200
    assert lock_time_multiplier(TOKEN_PROFILE, 360 * SECONDS_PER_DAY) == 150
    assert lock_time_multiplier(TOKEN_PROFILE, 180 * SECONDS_PER_DAY) == 150
    assert lock_time_multiplier(TOKEN_PROFILE, 90 * SECONDS_PER_DAY) == 120
    assert lock_time_multiplier(TOKEN_PROFILE, 89 * SECONDS_PER_DAY) == 100


def test_pool_tier_classification() -> None:
    thresholds = (500, 5_000, 50_000)
    assert classify_pool_tier(50_000, thresholds) == "gold"
    assert classify_pool_tier(49_999, thresholds) == "silver"
    assert classify_pool_tier(5_000, thresholds) == "silver"
    assert classify_pool_tier(500, thresholds) == "bronze"
    # below bronze still reports bronze
    assert classify_pool_tier(0, thresholds) == "bronze"


def test_pool_base_rate_below_bronze_uses_profile_default() -> None:
    pool = _pool(tier_base_rates=(7, 10, 15))
    assert base_rate(POOL_PROFILE, pool, 0) == (5, "bronze")
    assert base_rate(POOL_PROFILE, pool, 500_000_000) == (7, "bronze")
    assert base_rate(POOL_PROFILE, pool, 5_000_000_000) == (10, "silver")
    assert base_rate(POOL_PROFILE, pool, 50_000_000_000) == (15, "gold")


def test_token_base_rate_is_flat_staking_apr() -> None:
    pool = _pool("token", staking_apr=9)
    assert base_rate(TOKEN_PROFILE, pool, 0)[0] == 9
    assert base_rate(TOKEN_PROFILE, pool, 10**12)[0] == 9


def test_effective_rate_divides_after_each_multiplication() -> None:
    # 5 * 150 / 100 = 7 (7.5 truncated), then 7 * 150 / 100 = 10 (10.5 truncated).
    # Folding both steps into one division would give 11.
    pool = _pool("token")
    q = resolve_effective_rate(TOKEN_PROFILE, pool, tier_amount=5_000_000, lock_duration_seconds=180 * SECONDS_PER_DAY)
    assert (q.base_rate, q.stake_multiplier, q.lock_multiplier) == (5, 150, 150)
    assert q.effective_rate == 10
    assert checked_div(checked_mul(checked_mul(5, 150), 150), 10_000) == 11


def test_effective_rate_pool_profile_examples() -> None:
    pool = _pool()
    q = resolve_effective_rate(POOL_PROFILE, pool, tier_amount=500_000_000, lock_duration_seconds=12 * SECONDS_PER_MONTH)
    assert q.pool_tier == "bronze"
    assert q.effective_rate == 12

    q = resolve_effective_rate(POOL_PROFILE, pool, tier_amount=5_000_000_000, lock_duration_seconds=6 * SECONDS_PER_MONTH)
    assert q.pool_tier == "silver"
    assert q.effective_rate == 22

    q = resolve_effective_rate(POOL_PROFILE, pool, tier_amount=1_000, lock_duration_seconds=0)
    assert q.effective_rate == 5


def test_unknown_profile_raises_keyerror() -> None:
    with pytest.raises(KeyError):
        get_profile("nope")
