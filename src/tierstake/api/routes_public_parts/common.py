# src/tierstake/api/routes_public_parts/common.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from tierstake.api.errors import ApiError

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _int_param(v: Any, default: int, *, lo: int, hi: int) -> int:
    """Parse an int-ish query param and clamp it to [lo, hi]."""
    if v is None:
        return int(default)
    try:
        n = int(str(v).strip())
    except ValueError:
        raise ApiError.bad_request("bad_request", "expected an integer query parameter", {"value": v})
    return max(int(lo), min(int(hi), n))
