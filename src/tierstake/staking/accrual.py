# src/tierstake/staking/accrual.py
from __future__ import annotations

"""
Reward accrual.

reward = principal * rate * elapsed / SECONDS_PER_YEAR / 100

evaluated strictly left to right, each step checked at u64 width. The
remainder of both divisions ("dust") is dropped on every claim and never
carried into the next one.
"""

from dataclasses import dataclass

from tierstake.ledger.constants import PERCENT, SECONDS_PER_YEAR
from tierstake.staking.arith import I64, checked_div, checked_mul, checked_sub
from tierstake.staking.errors import StakingApplyError
from tierstake.staking.records import StakePosition


@dataclass(frozen=True)
class Accrual:
    elapsed: int
    reward: int


def compute_reward(principal: int, rate: int, elapsed: int) -> int:
    """Pure reward formula. Raises ArithmeticOverflow, never wraps."""
    r = checked_mul(principal, rate)
    r = checked_mul(r, elapsed)
    r = checked_div(r, SECONDS_PER_YEAR)
    return checked_div(r, PERCENT)


def elapsed_since_claim(position: StakePosition, now: int) -> int:
    """Seconds since the last claim.

    A last_claim_time in the future means the record or the clock is broken;
    that is reported as invalid state rather than being clamped.
    """
    if int(now) < int(position.last_claim_time):
        raise StakingApplyError(
            "invalid_state",
            "last_claim_time_in_future",
            {"now": int(now), "last_claim_time": int(position.last_claim_time)},
        )
    return checked_sub(now, position.last_claim_time, I64)


def accrue(position: StakePosition, now: int) -> Accrual:
    elapsed = elapsed_since_claim(position, now)
    return Accrual(elapsed=elapsed, reward=compute_reward(position.principal, position.effective_rate, elapsed))


def pending_reward(position: StakePosition, now: int) -> int:
    """Read-only estimate. A future last_claim_time estimates as zero."""
    if int(now) < int(position.last_claim_time):
        return 0
    return accrue(position, now).reward
