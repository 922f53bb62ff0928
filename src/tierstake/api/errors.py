# src/tierstake/api/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})


# Receipt error code -> HTTP status. Anything unlisted is a 400.
_STATUS_BY_CODE: Dict[str, int] = {
    "unauthorized": 403,
    "forbidden": 403,
    "bad_sig": 403,
    "not_found": 404,
    "bad_nonce": 409,
    "already_exists": 409,
    "insufficient_funds": 409,
    "insufficient_balance": 409,
    "lock_period_not_expired": 409,
    "no_rewards_to_claim": 409,
    "arithmetic_overflow": 422,
    "invalid_state": 422,
}


def status_for_code(code: str) -> int:
    return int(_STATUS_BY_CODE.get(str(code or ""), 400))


def from_receipt(receipt: Dict[str, Any]) -> ApiError:
    err = receipt.get("error") if isinstance(receipt.get("error"), dict) else {}
    code = str(err.get("code") or "tx_rejected")
    return ApiError(
        status_for_code(code),
        code,
        str(err.get("reason") or "tx rejected"),
        {"receipt": receipt},
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=int(exc.status_code),
        content={"ok": False, "error": {"code": exc.code, "message": exc.message, "details": exc.details}},
    )
