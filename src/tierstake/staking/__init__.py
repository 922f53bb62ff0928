# src/tierstake/staking/__init__.py
"""Tiered staking engine.

Pure pieces (tiers, rates, lock, accrual, arith) take plain values and
records and never touch storage. Mutation happens in
tierstake.runtime.apply.staking, which threads pool and position records
through them.
"""

from __future__ import annotations

__all__ = [
    "accrual",
    "arith",
    "errors",
    "lock",
    "profiles",
    "rates",
    "records",
    "tiers",
]
