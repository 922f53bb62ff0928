# src/tierstake/api/routes_public_parts/health.py
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    """Liveness plus a small view of the ledger head. Never raises."""
    ex = getattr(request.app.state, "executor", None)
    out: Dict[str, Any] = {"ok": True, "service": "tierstake", "ts_ms": int(time.time() * 1000)}
    if ex is None:
        out["executor"] = "not_attached"
        return out

    st = ex.read_state()
    out["executor"] = "ready"
    out["chain_id"] = str(st.get("chain_id") or "")
    out["height"] = int(st.get("height") or 0)
    out["time"] = int(st.get("time") or 0)
    return out
