"""
Tool name -> handler method dispatch.

Tool names form a closed enum and are resolved through one exhaustive
`match`, so adding a `ToolName` without a branch fails the registry tests.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .auth import LinearAuth
from .errors import UnknownToolError
from .graphql.client import LinearGraphQLClient
from .handlers import (
    AttachmentHandler,
    AuthHandler,
    IssueHandler,
    ProjectHandler,
    TeamHandler,
    ToolResponse,
    UserHandler,
)

ToolCallable = Callable[[Dict[str, Any]], Awaitable[ToolResponse]]


class ToolName(str, enum.Enum):
    AUTH = "linear_auth"
    AUTH_CALLBACK = "linear_auth_callback"
    CREATE_ISSUE = "linear_create_issue"
    CREATE_ISSUES = "linear_create_issues"
    SEARCH_ISSUES = "linear_search_issues"
    DELETE_ISSUE = "linear_delete_issue"
    CREATE_PROJECT_WITH_ISSUES = "linear_create_project_with_issues"
    GET_PROJECT = "linear_get_project"
    SEARCH_PROJECTS = "linear_search_projects"
    GET_TEAMS = "linear_get_teams"
    GET_USER = "linear_get_user"
    ADD_ATTACHMENT_TO_ISSUE = "linear_add_attachment_to_issue"


@dataclass(frozen=True)
class Handlers:
    auth: AuthHandler
    issues: IssueHandler
    projects: ProjectHandler
    teams: TeamHandler
    users: UserHandler
    attachments: AttachmentHandler


def build_handlers(
    auth: LinearAuth,
    client: Optional[LinearGraphQLClient] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Handlers:
    """Construct every feature handler once with the shared dependencies."""
    return Handlers(
        auth=AuthHandler(auth, client),
        issues=IssueHandler(auth, client),
        projects=ProjectHandler(auth, client),
        teams=TeamHandler(auth, client),
        users=UserHandler(auth, client),
        attachments=AttachmentHandler(auth, client, http_client),
    )


class ToolRegistry:
    def __init__(self, handlers: Handlers) -> None:
        self.handlers = handlers

    def resolve(self, tool_name: str) -> ToolCallable:
        try:
            tool = ToolName(tool_name)
        except ValueError:
            raise UnknownToolError(tool_name) from None

        h = self.handlers
        match tool:
            case ToolName.AUTH:
                return h.auth.handle_auth
            case ToolName.AUTH_CALLBACK:
                return h.auth.handle_auth_callback
            case ToolName.CREATE_ISSUE:
                return h.issues.handle_create_issue
            case ToolName.CREATE_ISSUES:
                return h.issues.handle_create_issues
            case ToolName.SEARCH_ISSUES:
                return h.issues.handle_search_issues
            case ToolName.DELETE_ISSUE:
                return h.issues.handle_delete_issue
            case ToolName.CREATE_PROJECT_WITH_ISSUES:
                return h.projects.handle_create_project_with_issues
            case ToolName.GET_PROJECT:
                return h.projects.handle_get_project
            case ToolName.SEARCH_PROJECTS:
                return h.projects.handle_search_projects
            case ToolName.GET_TEAMS:
                return h.teams.handle_get_teams
            case ToolName.GET_USER:
                return h.users.handle_get_user
            case ToolName.ADD_ATTACHMENT_TO_ISSUE:
                return h.attachments.handle_add_attachment
        raise UnknownToolError(tool_name)

    async def dispatch(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResponse:
        handler = self.resolve(tool_name)
        return await handler(arguments or {})

    @staticmethod
    def tool_names() -> List[str]:
        return [tool.value for tool in ToolName]
