# src/tierstake/staking/arith.py
from __future__ import annotations

"""Checked integer arithmetic at a fixed working width.

Python ints never wrap, so they serve as the widened intermediate: every
operation computes the exact result first and only then checks it against
the target range. Nothing out of range is ever returned.
"""

from tierstake.ledger.constants import I64_MAX, I64_MIN, U64_MAX
from tierstake.staking.errors import ArithmeticOverflow

U64 = (0, U64_MAX)
I64 = (I64_MIN, I64_MAX)


def _check(value: int, bounds: tuple[int, int], op: str, a: int, b: int) -> int:
    lo, hi = bounds
    if value < lo or value > hi:
        raise ArithmeticOverflow(f"{op}_out_of_range", {"op": op, "a": int(a), "b": int(b)})
    return value


def checked_add(a: int, b: int, bounds: tuple[int, int] = U64) -> int:
    return _check(int(a) + int(b), bounds, "add", a, b)


def checked_sub(a: int, b: int, bounds: tuple[int, int] = U64) -> int:
    return _check(int(a) - int(b), bounds, "sub", a, b)


def checked_mul(a: int, b: int, bounds: tuple[int, int] = U64) -> int:
    return _check(int(a) * int(b), bounds, "mul", a, b)


def checked_div(a: int, b: int, bounds: tuple[int, int] = U64) -> int:
    """Truncating division. Division by zero is reported as overflow."""
    if int(b) == 0:
        raise ArithmeticOverflow("div_by_zero", {"op": "div", "a": int(a), "b": 0})
    # Operands in this engine are non-negative, so floor == truncation.
    return _check(int(a) // int(b), bounds, "div", a, b)
