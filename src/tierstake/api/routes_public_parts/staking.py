# src/tierstake/api/routes_public_parts/staking.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from tierstake.api.errors import ApiError
from tierstake.api.routes_public_parts.common import _executor, _int_param

router = APIRouter()

Json = Dict[str, Any]


@router.get("/staking/pools/{pool_id}")
def pool_get(pool_id: str, request: Request) -> Json:
    info = _executor(request).pool_info(pool_id)
    if info is None:
        raise ApiError.not_found("not_found", "pool not found", {"pool_id": pool_id})
    return {"ok": True, "pool": info}


@router.get("/staking/pools/{pool_id}/positions/{staker}")
def position_get(pool_id: str, staker: str, request: Request) -> Json:
    """Read-only staking info: principal, rate, tier, pending reward, remaining lock."""
    info = _executor(request).staking_info(pool_id, staker)
    if info is None:
        raise ApiError.not_found("not_found", "position not found", {"pool_id": pool_id, "staker": staker})
    return {"ok": True, "position": info}


@router.get("/staking/events")
def events_list(request: Request, limit: Optional[str] = None, pool_id: str = "") -> Json:
    n = _int_param(limit, 50, lo=1, hi=1000)
    events = _executor(request).recent_events(limit=n, pool_id=pool_id.strip())
    return {"ok": True, "events": events, "count": len(events)}
