# src/tierstake/api/app.py
from __future__ import annotations

import os

from fastapi import FastAPI

from tierstake.api.errors import ApiError, api_error_handler
from tierstake.api.routes_public import public_router
from tierstake.api.security import RequestSizeLimitMiddleware
from tierstake.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from tierstake.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build a StakingExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `tierstake.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load node config + attach executor
      - False: keep lightweight for unit tests / import-time validation
    """
    configure_structured_logging()
    mode = os.environ.get("TIERSTAKE_MODE", "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="Tierstake Node API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Tierstake Node API")

    app.state.executor = build_executor() if boot_runtime else None

    # --- Middleware ---
    # Added last runs first: request logging wraps the size limiter.
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)

    # --- Routers ---
    app.include_router(public_router)

    return app
