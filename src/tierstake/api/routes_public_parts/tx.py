# src/tierstake/api/routes_public_parts/tx.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tierstake.api.errors import from_receipt
from tierstake.api.routes_public_parts.common import _executor
from tierstake.api.schemas import TxSubmitRequest

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx/submit")
def tx_submit(body: TxSubmitRequest, request: Request) -> Json:
    """Submit a user tx envelope and apply it.

    System txs are not accepted here: TxSubmitRequest forbids the `system`
    field outright.

    Returns the executor receipt:
      { ok, height, time, applied, result }
    A rejected tx still consumes its nonce; the error body carries the receipt.
    """
    receipt = _executor(request).submit_tx(body.to_envelope())
    if not isinstance(receipt, dict) or not receipt.get("ok"):
        raise from_receipt(receipt if isinstance(receipt, dict) else {"error": {"code": "submit_failed"}})
    return receipt
