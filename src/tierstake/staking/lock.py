# src/tierstake/staking/lock.py
from __future__ import annotations

from tierstake.staking.arith import I64, checked_add
from tierstake.staking.errors import LockPeriodNotExpired
from tierstake.staking.records import StakePosition


def unlock_time(position: StakePosition) -> int:
    return checked_add(position.stake_time, position.lock_duration, I64)


def is_unlock_eligible(position: StakePosition, now: int) -> bool:
    """Inclusive: a withdrawal at exactly stake_time + lock_duration is allowed."""
    return int(now) >= unlock_time(position)


def lock_remaining(position: StakePosition, now: int) -> int:
    expiry = unlock_time(position)
    n = int(now)
    return expiry - n if n < expiry else 0


def require_unlocked(position: StakePosition, now: int) -> None:
    """
    There is no grace period and no way to cancel a lock in place. Shortening
    a lock means withdrawing everything after expiry and staking again.
    """
    expiry = unlock_time(position)
    if int(now) < expiry:
        raise LockPeriodNotExpired(
            details={
                "now": int(now),
                "unlock_time": int(expiry),
                "remaining": int(expiry - int(now)),
            }
        )
