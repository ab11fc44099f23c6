"""
Error taxonomy for the Linear MCP server.

Every error carries the JSON-RPC error code the transport should report.
`ToolError` subclasses are "already typed": handlers re-raise them as-is
instead of wrapping them in a "Failed to ..." message.
"""
from __future__ import annotations

from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorData,
)


class LinearError(Exception):
    """Base exception for all Linear MCP server errors."""

    code: int = INTERNAL_ERROR


class ToolError(LinearError):
    """Errors raised deliberately by a handler; never double-wrapped."""
    pass


class ValidationError(ToolError):
    """Missing or invalid tool arguments."""

    code = INVALID_PARAMS


class AuthError(ToolError):
    """No authenticated Linear client is available."""

    code = INVALID_REQUEST


class FileAccessError(ToolError):
    """A local file exists but cannot be read."""
    pass


class ToolExecutionError(ToolError):
    """A handler step failed; message reads 'Failed to {action}: {cause}'."""
    pass


class OperationError(LinearError):
    """A remote GraphQL or HTTP call failed."""
    pass


class UnknownToolError(LinearError):
    """The requested tool name is not registered."""

    code = METHOD_NOT_FOUND

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


def to_mcp_error(exc: LinearError) -> McpError:
    """
    Wrap `exc` with its JSON-RPC code.

    The code is only observable where `_call_tool` raises it. FastMCP reports
    any tool exception to the client as an `isError` result carrying the
    message text, and rejects unregistered tool names before `_call_tool` runs.
    """
    return McpError(ErrorData(code=exc.code, message=str(exc)))
