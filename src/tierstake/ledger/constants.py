# src/tierstake/ledger/constants.py
from __future__ import annotations

"""Ledger-wide constants shared by the staking engine and its adapters.

Time constants are fixed-length on purpose: a "month" is always 30 days and
a "year" is always 365 days. Neither is calendar-accurate.
"""

SECONDS_PER_DAY: int = 24 * 60 * 60
SECONDS_PER_MONTH: int = 30 * SECONDS_PER_DAY
SECONDS_PER_YEAR: int = 365 * SECONDS_PER_DAY  # 31,536,000

# Rates are whole percentages; rewards divide by this after the year divisor.
PERCENT: int = 100

# Working integer widths.
U8_MAX: int = 2**8 - 1
U64_MAX: int = 2**64 - 1
I64_MIN: int = -(2**63)
I64_MAX: int = 2**63 - 1

# Staked principal for a pool is held by this account in the token ledger.
VAULT_ACCOUNT_PREFIX: str = "vault:"

TIER_NAMES = ("bronze", "silver", "gold")


def vault_account_id(pool_id: str) -> str:
    return f"{VAULT_ACCOUNT_PREFIX}{pool_id}"
