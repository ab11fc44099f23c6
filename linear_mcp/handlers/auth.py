from __future__ import annotations

import logging
from typing import Any, Dict

from .base import BaseHandler, ToolResponse

logger = logging.getLogger("linear_mcp.handlers.auth")


class AuthHandler(BaseHandler):
    """OAuth tools. Neither needs an authenticated client beforehand."""

    async def handle_auth(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            self.validate_required_params(args, ["clientId", "clientSecret", "redirectUri"])
            self.auth.initialize_oauth(args["clientId"], args["clientSecret"], args["redirectUri"])
            url = self.auth.authorization_url()
            logger.info("OAuth flow started")
            return self.create_response(
                f"Please visit the following URL to authorize the application:\n{url}"
            )
        except Exception as exc:
            self.handle_error(exc, "initialize OAuth flow")

    async def handle_auth_callback(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            self.validate_required_params(args, ["code"])
            await self.auth.handle_callback(args["code"])
            return self.create_response("Successfully authenticated with Linear")
        except Exception as exc:
            self.handle_error(exc, "handle OAuth callback")
