from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client


MCP_URL = os.getenv("LINEAR_MCP_URL", "http://127.0.0.1:9000/mcp")


def _headers() -> Dict[str, str]:
    token = os.getenv("MCP_SERVER_TOKEN")
    return {"Authorization": f"Bearer {token}"} if token else {}


@asynccontextmanager
async def open_session() -> AsyncIterator[ClientSession]:
    """Initialized client session against a running streamable-http server."""
    async with streamablehttp_client(MCP_URL, headers=_headers()) as (read_stream, write_stream, _):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()
            yield session
