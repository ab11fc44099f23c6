from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from mcp.types import TextContent

from ..auth import LinearAuth
from ..errors import AuthError, ToolError, ToolExecutionError, ValidationError
from ..graphql.client import LinearGraphQLClient


@dataclass(frozen=True)
class ToolResponse:
    """Normalized success envelope returned by every handler method."""

    content: List[Dict[str, str]]

    @property
    def text(self) -> str:
        return "\n".join(item["text"] for item in self.content)

    def to_content(self) -> List[TextContent]:
        return [TextContent(type="text", text=item["text"]) for item in self.content]


class BaseHandler:
    """
    Shared request/response contract for all feature handlers.

    Handlers are built once at startup and hold only the auth state and the
    (possibly absent) GraphQL client; nothing else survives between calls.
    """

    def __init__(self, auth: LinearAuth, client: Optional[LinearGraphQLClient] = None) -> None:
        self.auth = auth
        self.client = client

    def verify_auth(self) -> LinearGraphQLClient:
        if not self.auth.is_authenticated() or self.client is None:
            raise AuthError("Not authenticated. Set LINEAR_ACCESS_TOKEN or complete the OAuth flow.")
        return self.client

    def validate_required_params(self, args: Dict[str, Any], required: Sequence[str]) -> None:
        for key in required:
            if args.get(key) is None:
                raise ValidationError(f"Missing required parameter: {key}")

    def create_response(self, text: str) -> ToolResponse:
        return ToolResponse(content=[{"type": "text", "text": text}])

    def create_json_response(self, data: Any) -> ToolResponse:
        return ToolResponse(content=[{"type": "text", "text": json.dumps(data, indent=2)}])

    def handle_error(self, error: BaseException, action: str) -> NoReturn:
        """
        Re-raise `error` as a typed tool failure.

        Errors that are already typed pass through untouched; anything else
        becomes "Failed to {action}: {message}".
        """
        if isinstance(error, ToolError):
            raise error
        message = str(error) or "Unknown error"
        raise ToolExecutionError(f"Failed to {action}: {message}") from error
