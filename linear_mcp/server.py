from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, ErrorData, TextContent

from .auth import LinearAuth
from .config import Settings, load_settings
from .errors import LinearError, to_mcp_error
from .graphql.client import LinearGraphQLClient
from .observability import InMemoryMetrics, setup_logger
from .registry import ToolName, ToolRegistry, build_handlers
from .schemas import IssueInput, ProjectInput, ProjectIssueInput


SETTINGS = load_settings()
METRICS = InMemoryMetrics()


@dataclass
class AppContext:
    settings: Settings
    auth: LinearAuth
    client: LinearGraphQLClient
    registry: ToolRegistry
    logger: logging.Logger


TypedContext = Context[ServerSession, AppContext]


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    http_limits = settings.http_limits
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=int(http_limits.get("max_connections", 20)),
            max_keepalive_connections=int(http_limits.get("max_keepalive_connections", 10)),
        ),
        timeout=httpx.Timeout(
            connect=float(http_limits.get("connect_timeout", 5.0)),
            read=float(http_limits.get("read_timeout", 30.0)),
            write=float(http_limits.get("write_timeout", 60.0)),
            pool=float(http_limits.get("pool_timeout", 5.0)),
        ),
    )


def build_app_context(settings: Settings, http_client: httpx.AsyncClient) -> AppContext:
    logger = setup_logger(settings)
    auth = LinearAuth.from_settings(settings, http_client)
    if auth.is_authenticated():
        logger.info("Linear auth initialized with personal access token")
    else:
        logger.warning(
            "LINEAR_ACCESS_TOKEN not set. Tools requiring auth will fail until the OAuth flow is completed."
        )
    client = LinearGraphQLClient(http_client, auth, settings.api_url)
    registry = ToolRegistry(build_handlers(auth, client, http_client))
    return AppContext(settings=settings, auth=auth, client=client, registry=registry, logger=logger)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    http_client = build_http_client(SETTINGS)
    try:
        yield build_app_context(SETTINGS, http_client)
    finally:
        await http_client.aclose()


mcp = FastMCP(
    SETTINGS.name,
    lifespan=lifespan,
    host=SETTINGS.host,
    port=SETTINGS.port,
)


def _require_context(ctx: TypedContext | None) -> TypedContext:
    if ctx is None:
        raise RuntimeError("Context is required")
    return ctx


async def _call_tool(
    ctx: TypedContext | None,
    tool_name: str,
    arguments: Dict[str, Any],
) -> List[TextContent]:
    """
    Resolve `tool_name` through the registry and run it.

    Unset optional arguments are dropped so handlers see only what the caller
    sent. Typed errors become McpErrors carrying their protocol code; FastMCP
    then reports them to the client as `isError` results with the message
    text, so the code does not travel over the wire.
    """
    app = _require_context(ctx).request_context.lifespan_context
    args = {key: value for key, value in arguments.items() if value is not None}
    correlation_id = str(uuid.uuid4())
    start = time.perf_counter()

    try:
        handler = app.registry.resolve(tool_name)
        response = await handler(args)
    except LinearError as exc:
        duration_ms = (time.perf_counter() - start) * 1000.0
        METRICS.record(tool_name, duration_ms, error=True)
        app.logger.warning(
            f"Tool call failed: {exc}",
            extra={"tool": tool_name, "correlation_id": correlation_id, "duration_ms": duration_ms},
        )
        raise to_mcp_error(exc) from exc
    except Exception as exc:
        duration_ms = (time.perf_counter() - start) * 1000.0
        METRICS.record(tool_name, duration_ms, error=True)
        app.logger.error(
            f"Unexpected error: {exc}",
            extra={"tool": tool_name, "correlation_id": correlation_id, "duration_ms": duration_ms},
            exc_info=True,
        )
        raise McpError(ErrorData(code=INTERNAL_ERROR, message=f"Unexpected error in {tool_name}: {exc}")) from exc

    duration_ms = (time.perf_counter() - start) * 1000.0
    METRICS.record(tool_name, duration_ms, error=False)
    app.logger.info(
        "Tool call succeeded",
        extra={"tool": tool_name, "correlation_id": correlation_id, "duration_ms": duration_ms},
    )
    return response.to_content()


# --- Auth ---

@mcp.tool(
    name=ToolName.AUTH.value,
    description="Start the Linear OAuth flow and return the authorization URL.",
    structured_output=False,
)
async def linear_auth(
    clientId: str,
    clientSecret: str,
    redirectUri: str,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(
        ctx,
        ToolName.AUTH.value,
        {"clientId": clientId, "clientSecret": clientSecret, "redirectUri": redirectUri},
    )


@mcp.tool(
    name=ToolName.AUTH_CALLBACK.value,
    description="Complete the Linear OAuth flow with the authorization code.",
    structured_output=False,
)
async def linear_auth_callback(
    code: str,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.AUTH_CALLBACK.value, {"code": code})


# --- Issues ---

@mcp.tool(
    name=ToolName.CREATE_ISSUE.value,
    description="Create a new Linear issue.",
    structured_output=False,
)
async def linear_create_issue(
    title: str,
    description: str,
    teamId: str,
    assigneeId: Optional[str] = None,
    priority: Optional[int] = None,
    projectId: Optional[str] = None,
    labelIds: Optional[List[str]] = None,
    createAsUser: Optional[str] = None,
    displayIconUrl: Optional[str] = None,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    """
    Parameters:
    - priority: 0 (none) to 4 (low)
    - createAsUser / displayIconUrl: name and avatar shown for the creator (OAuth apps only)
    """
    return await _call_tool(
        ctx,
        ToolName.CREATE_ISSUE.value,
        {
            "title": title,
            "description": description,
            "teamId": teamId,
            "assigneeId": assigneeId,
            "priority": priority,
            "projectId": projectId,
            "labelIds": labelIds,
            "createAsUser": createAsUser,
            "displayIconUrl": displayIconUrl,
        },
    )


@mcp.tool(
    name=ToolName.CREATE_ISSUES.value,
    description="Create multiple Linear issues in one batch. Each issue needs title, description and teamId.",
    structured_output=False,
)
async def linear_create_issues(
    issues: List[IssueInput],
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(
        ctx,
        ToolName.CREATE_ISSUES.value,
        {"issues": [issue.to_args() for issue in issues]},
    )


@mcp.tool(
    name=ToolName.SEARCH_ISSUES.value,
    description="Search Linear issues by title text, project, teams, assignees, states or priority.",
    structured_output=False,
)
async def linear_search_issues(
    query: Optional[str] = None,
    projectId: Optional[str] = None,
    teamIds: Optional[List[str]] = None,
    assigneeIds: Optional[List[str]] = None,
    states: Optional[List[str]] = None,
    priority: Optional[int] = None,
    first: Optional[int] = None,
    after: Optional[str] = None,
    orderBy: Optional[str] = None,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    """
    Parameters:
    - first: page size (default 50)
    - after: pagination cursor from a previous result
    - orderBy: createdAt | updatedAt (default updatedAt)
    """
    return await _call_tool(
        ctx,
        ToolName.SEARCH_ISSUES.value,
        {
            "query": query,
            "projectId": projectId,
            "teamIds": teamIds,
            "assigneeIds": assigneeIds,
            "states": states,
            "priority": priority,
            "first": first,
            "after": after,
            "orderBy": orderBy,
        },
    )


@mcp.tool(
    name=ToolName.DELETE_ISSUE.value,
    description="Delete a Linear issue by id or identifier (e.g. ENG-123).",
    structured_output=False,
)
async def linear_delete_issue(
    id: str,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.DELETE_ISSUE.value, {"id": id})


# --- Projects ---

@mcp.tool(
    name=ToolName.CREATE_PROJECT_WITH_ISSUES.value,
    description=(
        "Create a Linear project and its issues. project needs name and teamIds "
        "(see linear_get_teams); each issue needs title, description and teamId."
    ),
    structured_output=False,
)
async def linear_create_project_with_issues(
    project: ProjectInput,
    issues: List[ProjectIssueInput],
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(
        ctx,
        ToolName.CREATE_PROJECT_WITH_ISSUES.value,
        {"project": project.to_args(), "issues": [issue.to_args() for issue in issues]},
    )


@mcp.tool(
    name=ToolName.GET_PROJECT.value,
    description="Get a Linear project with its teams and issues.",
    structured_output=False,
)
async def linear_get_project(
    id: str,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.GET_PROJECT.value, {"id": id})


@mcp.tool(
    name=ToolName.SEARCH_PROJECTS.value,
    description="Find Linear projects by exact name.",
    structured_output=False,
)
async def linear_search_projects(
    name: str,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.SEARCH_PROJECTS.value, {"name": name})


# --- Teams & users ---

@mcp.tool(
    name=ToolName.GET_TEAMS.value,
    description="List Linear teams with their workflow states and labels.",
    structured_output=False,
)
async def linear_get_teams(ctx: TypedContext | None = None) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.GET_TEAMS.value, {})


@mcp.tool(
    name=ToolName.GET_USER.value,
    description="Get the authenticated Linear user and their teams.",
    structured_output=False,
)
async def linear_get_user(ctx: TypedContext | None = None) -> List[TextContent]:
    return await _call_tool(ctx, ToolName.GET_USER.value, {})


# --- Attachments ---

@mcp.tool(
    name=ToolName.ADD_ATTACHMENT_TO_ISSUE.value,
    description=(
        "Upload a local file to Linear and append it to an issue description "
        "as a Markdown image/link."
    ),
    structured_output=False,
)
async def linear_add_attachment_to_issue(
    issueId: str,
    filePath: str,
    contentType: str,
    fileName: Optional[str] = None,
    title: Optional[str] = None,
    ctx: TypedContext | None = None,
) -> List[TextContent]:
    """
    Parameters:
    - filePath: absolute path readable by the server process
    - contentType: MIME type, e.g. image/png
    - fileName: overrides the basename of filePath
    - title: link text, defaults to the file name
    """
    return await _call_tool(
        ctx,
        ToolName.ADD_ATTACHMENT_TO_ISSUE.value,
        {
            "issueId": issueId,
            "filePath": filePath,
            "contentType": contentType,
            "fileName": fileName,
            "title": title,
        },
    )
