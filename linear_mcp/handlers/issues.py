"""Issue tools: create, batch create, search and delete."""
from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import OperationError, ValidationError
from .base import BaseHandler, ToolResponse

logger = logging.getLogger("linear_mcp.handlers.issues")

DEFAULT_PAGE_SIZE = 50
DEFAULT_ORDER_BY = "updatedAt"


def build_issue_filter(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translate search arguments into a Linear IssueFilter.

    Only dimensions present in `args` appear in the result, so an empty
    argument set yields an empty filter.
    """
    filter: Dict[str, Any] = {}

    if args.get("query"):
        filter["title"] = {"containsIgnoreCase": args["query"]}

    project_id = args.get("projectId")
    if not project_id:
        nested = args.get("filter") or {}
        project_id = ((nested.get("project") or {}).get("id") or {}).get("eq")
    if project_id:
        filter["project"] = {"id": {"eq": project_id}}

    if args.get("teamIds") is not None:
        filter["team"] = {"id": {"in": args["teamIds"]}}
    if args.get("assigneeIds") is not None:
        filter["assignee"] = {"id": {"in": args["assigneeIds"]}}
    if args.get("states") is not None:
        filter["state"] = {"name": {"in": args["states"]}}

    priority = args.get("priority")
    if isinstance(priority, int) and not isinstance(priority, bool):
        filter["priority"] = {"eq": priority}

    return filter


class IssueHandler(BaseHandler):
    async def handle_create_issue(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["title", "description", "teamId"])

            result = await client.create_issue(args)
            issue_create = result.get("issueCreate") or {}
            issue = issue_create.get("issue")
            if not issue_create.get("success") or not issue:
                raise OperationError("Linear reported the issue was not created")

            project = issue.get("project")
            logger.info(f"Created issue {issue.get('identifier')}")
            return self.create_response(
                "Successfully created issue\n"
                f"Issue: {issue.get('identifier')}\n"
                f"Title: {issue.get('title')}\n"
                f"URL: {issue.get('url')}\n"
                f"Project: {project['name'] if project else 'None'}"
            )
        except Exception as exc:
            self.handle_error(exc, "create issue")

    async def handle_create_issues(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["issues"])
            if not isinstance(args["issues"], list):
                raise ValidationError("Issues parameter must be an array")

            result = await client.create_issues(args["issues"])
            batch = result.get("issueBatchCreate") or {}
            if not batch.get("success"):
                raise OperationError("Linear reported the issues were not created")

            created = batch.get("issues") or []
            logger.info(f"Created {len(created)} issues")
            lines = [f"Successfully created {len(created)} issues:"]
            for issue in created:
                lines.append(f"- {issue.get('identifier')}: {issue.get('title')}\n  URL: {issue.get('url')}")
            return self.create_response("\n".join(lines))
        except Exception as exc:
            self.handle_error(exc, "create issues")

    async def handle_search_issues(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            result = await client.search_issues(
                build_issue_filter(args),
                args.get("first") or DEFAULT_PAGE_SIZE,
                args.get("after"),
                args.get("orderBy") or DEFAULT_ORDER_BY,
            )
            return self.create_json_response(result)
        except Exception as exc:
            self.handle_error(exc, "search issues")

    async def handle_delete_issue(self, args: Dict[str, Any]) -> ToolResponse:
        try:
            client = self.verify_auth()
            self.validate_required_params(args, ["id"])

            result = await client.delete_issue(args["id"])
            if not (result.get("issueDelete") or {}).get("success"):
                raise OperationError("Linear reported the issue was not deleted")

            logger.info(f"Deleted issue {args['id']}")
            return self.create_response(f"Successfully deleted issue {args['id']}")
        except Exception as exc:
            self.handle_error(exc, "delete issue")
