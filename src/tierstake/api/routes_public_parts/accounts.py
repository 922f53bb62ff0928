# src/tierstake/api/routes_public_parts/accounts.py
from __future__ import annotations

from fastapi import APIRouter, Request

from tierstake.api.routes_public_parts.common import _executor

router = APIRouter()


@router.get("/accounts/{account}")
def v1_account_get(account: str, request: Request):
    info = _executor(request).account_info(account)
    return {"ok": True, **info}
