"""
FastAPI/ASGI wrapper for serving the MCP server over streamable HTTP.

- Bearer token auth on /mcp when MCP_SERVER_TOKEN is configured
- MCP streamable-HTTP app under /mcp
- Healthcheck under /health, Prometheus metrics under /metrics
"""
from __future__ import annotations

import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .server import METRICS, SETTINGS, mcp

logger = logging.getLogger("linear_mcp.http_app")

PUBLIC_PATHS = ("/health", "/metrics")


class BearerTokenAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, expected_token: Optional[str] = None) -> None:
        super().__init__(app)
        self.expected_token = expected_token if expected_token is not None else (SETTINGS.server_token or "")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in PUBLIC_PATHS or not path.startswith("/mcp") or not self.expected_token:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Bearer "):
            logger.warning(f"Missing or invalid Authorization header for {request.method} {path}")
            return JSONResponse(
                {"error": "unauthorized", "message": "Missing or invalid Authorization header"},
                status_code=status.HTTP_401_UNAUTHORIZED,
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header[len("Bearer "):]
        if not hmac.compare_digest(token, self.expected_token):
            logger.warning(f"Invalid token for {request.method} {path}")
            return JSONResponse(
                {"error": "unauthorized", "message": "Invalid token"},
                status_code=status.HTTP_401_UNAUTHORIZED,
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)


def create_app(expected_token: Optional[str] = None) -> FastAPI:
    mcp_app = mcp.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with mcp.session_manager.run():
            yield

    app = FastAPI(
        title="Linear MCP Server",
        description="MCP tools for Linear issues, projects, teams, users and attachments",
        version=SETTINGS.version,
        lifespan=lifespan,
    )
    app.add_middleware(BearerTokenAuthMiddleware, expected_token=expected_token)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"ok": True, "status": "healthy", "server": SETTINGS.name}

    @app.get("/metrics")
    async def metrics() -> Response:
        return PlainTextResponse(METRICS.render_prometheus(), media_type="text/plain; version=0.0.4")

    # The MCP app routes its endpoint at /mcp itself
    app.mount("/", mcp_app)
    return app
