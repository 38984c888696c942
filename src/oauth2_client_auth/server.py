"""Starlette application wiring and the uvicorn launcher."""

from __future__ import annotations

import logging
import time as _time
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from oauth2_client_auth.client import ClientRepository
from oauth2_client_auth.constants import STATE_AUTHENTICATION_METHOD, STATE_CLIENT
from oauth2_client_auth.middleware import ClientAuthenticationMiddleware
from oauth2_client_auth.registry import MethodRegistry

logger = logging.getLogger(__name__)


def create_app(
    registry: MethodRegistry,
    repository: ClientRepository,
    *,
    token_path: str = "/token",
    exempt_paths: set[str] | None = None,
) -> Starlette:
    """Build a Starlette app exposing a client-introspecting token endpoint.

    The ``token_path`` endpoint reports which client (if any) the middleware
    authenticated; a real deployment replaces it with token issuance.
    """
    start_time = _time.monotonic()

    async def token(request: Request) -> JSONResponse:
        client = getattr(request.state, STATE_CLIENT, None)
        if client is None:
            return JSONResponse({"authenticated": False})
        method = getattr(request.state, STATE_AUTHENTICATION_METHOD)
        return JSONResponse(
            {
                "authenticated": True,
                "client_id": client.client_id,
                "token_endpoint_auth_method": method.supported_methods()[0],
            }
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "uptime_seconds": round(_time.monotonic() - start_time, 1),
                "methods": registry.list(),
            }
        )

    return Starlette(
        routes=[
            Route(token_path, endpoint=token, methods=["POST"]),
            Route("/health", endpoint=health, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                ClientAuthenticationMiddleware,
                registry=registry,
                repository=repository,
                exempt_paths=exempt_paths,
            )
        ],
    )


def serve(
    registry: MethodRegistry,
    repository: ClientRepository,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: str | None = None,
    **app_options: Any,
) -> None:
    """Run the token endpoint app with uvicorn. Blocks until shutdown."""
    if not host:
        raise ValueError("Host must not be empty")
    if not isinstance(port, int) or port < 1 or port > 65535:
        raise ValueError(f"Port must be between 1 and 65535, got {port}")
    if log_level is not None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level.upper() not in valid_levels:
            raise ValueError(f"Unknown log level: {log_level!r}. Valid: {sorted(valid_levels)}")
        logging.getLogger("oauth2_client_auth").setLevel(getattr(logging, log_level.upper()))

    app = create_app(registry, repository, **app_options)
    logger.info("Starting token endpoint on %s:%d with methods %s", host, port, ", ".join(registry.list()))
    uvicorn.run(app, host=host, port=port, log_level=(log_level or "info").lower())
