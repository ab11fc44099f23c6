"""
Entry point for the Linear MCP server.

LINEAR_MCP_TRANSPORT (or server.transport in the config) selects the
transport: stdio for local MCP clients, streamable-http to serve /mcp.
"""
from __future__ import annotations

import sys

import uvicorn

from .server import SETTINGS, mcp


def main() -> None:
    try:
        if SETTINGS.transport == "stdio":
            print(f"Starting {SETTINGS.name} {SETTINGS.version} on stdio", file=sys.stderr)
            mcp.run()
            return

        from .http_app import create_app

        print(f"Starting {SETTINGS.name} on http://{SETTINGS.host}:{SETTINGS.port}", file=sys.stderr)
        print(f"MCP endpoint: http://{SETTINGS.host}:{SETTINGS.port}/mcp", file=sys.stderr)
        print(f"Healthcheck: http://{SETTINGS.host}:{SETTINGS.port}/health", file=sys.stderr)
        uvicorn.run(
            create_app(),
            host=SETTINGS.host,
            port=SETTINGS.port,
            log_level=SETTINGS.log_level.lower(),
            server_header=False,
        )
    except KeyboardInterrupt:
        print("\nServer shutdown requested...", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Failed to start Linear MCP server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
