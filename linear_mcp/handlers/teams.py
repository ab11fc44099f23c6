from __future__ import annotations

from typing import Any, Dict, Optional

from .base import BaseHandler, ToolResponse


class TeamHandler(BaseHandler):
    async def handle_get_teams(self, args: Optional[Dict[str, Any]] = None) -> ToolResponse:
        """Teams with their workflow states and labels."""
        try:
            client = self.verify_auth()
            result = await client.get_teams()
            return self.create_json_response(result)
        except Exception as exc:
            self.handle_error(exc, "get teams")
