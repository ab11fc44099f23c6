from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import ValidationError
from .base import BaseHandler, ToolResponse

logger = logging.getLogger("linear_mcp.handlers.projects")


class ProjectHandler(BaseHandler):
    async def handle_create_project_with_issues(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["project", "issues"])
            project = args["project"]
            if not isinstance(project, dict):
                raise ValidationError("Project parameter must be an object")
            self.validate_required_params(project, ["name", "teamIds"])
            if not isinstance(args["issues"], list):
                raise ValidationError("Issues parameter must be an array")

            result = await client.create_project_with_issues(project, args["issues"])
            created_project = result["projectCreate"]["project"]
            created_issues = result["issueBatchCreate"].get("issues") or []

            logger.info(f"Created project {created_project.get('name')} with {len(created_issues)} issues")
            lines = [
                "Successfully created project with issues",
                f"Project: {created_project.get('name')}",
                f"Project URL: {created_project.get('url')}",
                f"Issues created: {len(created_issues)}",
            ]
            for issue in created_issues:
                lines.append(f"- {issue.get('identifier')}: {issue.get('title')}\n  URL: {issue.get('url')}")
            return self.create_response("\n".join(lines))
        except Exception as exc:
            self.handle_error(exc, "create project with issues")

    async def handle_get_project(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["id"])
            result = await client.get_project(args["id"])
            return self.create_json_response(result)
        except Exception as exc:
            self.handle_error(exc, "get project info")

    async def handle_search_projects(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["name"])
            result = await client.search_projects({"name": {"eq": args["name"]}})
            return self.create_json_response(result)
        except Exception as exc:
            self.handle_error(exc, "search projects")
