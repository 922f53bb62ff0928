# src/tierstake/staking/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from tierstake.runtime.errors import ApplyError

Json = Dict[str, Any]


@dataclass
class StakingApplyError(ApplyError):
    """
    Staking domain errors MUST be ApplyError so the executor rolls the whole
    operation back and reports the specific code in its receipt.
    """

    code: str
    reason: str
    details: Optional[Json] = None


class Unauthorized(StakingApplyError):
    def __init__(self, reason: str = "caller_not_pool_authority", details: Optional[Json] = None) -> None:
        super().__init__("unauthorized", reason, details)


class InsufficientFunds(StakingApplyError):
    def __init__(self, reason: str = "amount_exceeds_principal", details: Optional[Json] = None) -> None:
        super().__init__("insufficient_funds", reason, details)


class LockPeriodNotExpired(StakingApplyError):
    def __init__(self, reason: str = "lock_period_not_expired", details: Optional[Json] = None) -> None:
        super().__init__("lock_period_not_expired", reason, details)


class NoRewardsToClaim(StakingApplyError):
    def __init__(self, reason: str = "reward_is_zero", details: Optional[Json] = None) -> None:
        super().__init__("no_rewards_to_claim", reason, details)


class ArithmeticOverflow(StakingApplyError):
    def __init__(self, reason: str = "overflow", details: Optional[Json] = None) -> None:
        super().__init__("arithmetic_overflow", reason, details)

