from __future__ import annotations

from typing import Any, Dict, Optional

from .base import BaseHandler, ToolResponse


class UserHandler(BaseHandler):
    async def handle_get_user(self, args: Optional[Dict[str, Any]] = None) -> ToolResponse:
        try:
            client = self.verify_auth()
            result = await client.get_current_user()
            return self.create_json_response(result)
        except Exception as exc:
            self.handle_error(exc, "get user info")
