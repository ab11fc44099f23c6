from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND
from pydantic import ValidationError as PydanticValidationError

from linear_mcp.config import Settings
from linear_mcp.observability import InMemoryMetrics
from linear_mcp.registry import ToolRegistry, build_handlers
from linear_mcp.schemas import IssueInput, ProjectInput, ProjectIssueInput
from linear_mcp import server


@pytest.fixture
def app_context(auth, mock_client):
    http_client = httpx.AsyncClient()
    app = server.build_app_context(Settings(access_token="lin_api_test"), http_client)
    app.registry = ToolRegistry(build_handlers(auth, mock_client, http_client))
    return app


def _ctx(app):
    return SimpleNamespace(request_context=SimpleNamespace(lifespan_context=app))


@pytest.fixture(autouse=True)
def fresh_metrics(monkeypatch) -> InMemoryMetrics:
    metrics = InMemoryMetrics()
    monkeypatch.setattr(server, "METRICS", metrics)
    return metrics


@pytest.mark.asyncio
async def test_registered_tools_match_registry() -> None:
    tools = await server.mcp.list_tools()

    assert sorted(tool.name for tool in tools) == sorted(ToolRegistry.tool_names())


@pytest.mark.asyncio
async def test_call_tool_success_drops_unset_arguments(app_context, mock_client, fresh_metrics) -> None:
    mock_client.search_issues.return_value = {"issues": {"nodes": []}}

    content = await server._call_tool(
        _ctx(app_context),
        "linear_search_issues",
        {"query": None, "priority": 1, "first": None},
    )

    mock_client.search_issues.assert_awaited_once_with({"priority": {"eq": 1}}, 50, None, "updatedAt")
    assert len(content) == 1
    assert content[0].type == "text"
    snapshot = fresh_metrics.snapshot()["linear_search_issues"]
    assert snapshot["calls"] == 1.0
    assert snapshot["errors"] == 0.0


@pytest.mark.asyncio
async def test_call_tool_unknown_name(app_context, fresh_metrics) -> None:
    with pytest.raises(McpError) as excinfo:
        await server._call_tool(_ctx(app_context), "linear_nope", {})

    assert excinfo.value.error.code == METHOD_NOT_FOUND
    assert fresh_metrics.snapshot()["linear_nope"]["errors"] == 1.0


@pytest.mark.asyncio
async def test_call_tool_validation_error(app_context, mock_client) -> None:
    with pytest.raises(McpError) as excinfo:
        await server._call_tool(_ctx(app_context), "linear_delete_issue", {"id": None})

    assert excinfo.value.error.code == INVALID_PARAMS
    assert excinfo.value.error.message == "Missing required parameter: id"
    mock_client.delete_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_call_tool_wrapped_failure(app_context, mock_client) -> None:
    mock_client.get_teams.side_effect = RuntimeError("socket closed")

    with pytest.raises(McpError) as excinfo:
        await server._call_tool(_ctx(app_context), "linear_get_teams", {})

    assert excinfo.value.error.code == INTERNAL_ERROR
    assert excinfo.value.error.message == "Failed to get teams: socket closed"


@pytest.mark.asyncio
async def test_unauthenticated_context_reports_auth_error() -> None:
    async with httpx.AsyncClient() as http_client:
        app = server.build_app_context(Settings(), http_client)

        assert not app.auth.is_authenticated()
        with pytest.raises(McpError) as excinfo:
            await server._call_tool(_ctx(app), "linear_get_user", {})

    assert excinfo.value.error.code == INVALID_REQUEST


@pytest.mark.asyncio
async def test_call_tool_requires_context() -> None:
    with pytest.raises(RuntimeError):
        await server._call_tool(None, "linear_get_teams", {})


def _item_schema(input_schema: dict, prop: str) -> dict:
    schema = input_schema["properties"][prop]
    if schema.get("type") == "array":
        schema = schema["items"]
    ref = schema.get("$ref")
    if ref:
        schema = input_schema["$defs"][ref.rsplit("/", 1)[-1]]
    return schema


@pytest.mark.asyncio
async def test_nested_tool_arguments_declare_required_fields() -> None:
    tools = {tool.name: tool for tool in await server.mcp.list_tools()}

    batch = tools["linear_create_issues"].inputSchema
    assert set(_item_schema(batch, "issues")["required"]) == {"title", "description", "teamId"}

    project_tool = tools["linear_create_project_with_issues"].inputSchema
    project = _item_schema(project_tool, "project")
    assert set(project["required"]) == {"name", "teamIds"}
    assert project["properties"]["teamIds"]["minItems"] == 1
    assert set(_item_schema(project_tool, "issues")["required"]) == {"title", "description", "teamId"}


def test_nested_models_reject_incomplete_input() -> None:
    with pytest.raises(PydanticValidationError):
        IssueInput(title="Bug", description="d")
    with pytest.raises(PydanticValidationError):
        ProjectInput(name="Launch", teamIds=[])


@pytest.mark.asyncio
async def test_batch_tool_passes_plain_dicts_to_handlers(app_context, mock_client) -> None:
    mock_client.create_issues.return_value = {"issueBatchCreate": {"success": True, "issues": []}}

    await server.linear_create_issues(
        [IssueInput(title="Bug", description="d", teamId="t", priority=1)],
        ctx=_ctx(app_context),
    )

    mock_client.create_issues.assert_awaited_once_with(
        [{"title": "Bug", "description": "d", "teamId": "t", "priority": 1}]
    )


@pytest.mark.asyncio
async def test_project_tool_passes_plain_dicts_to_handlers(app_context, mock_client) -> None:
    mock_client.create_project_with_issues.return_value = {
        "projectCreate": {"success": True, "project": {"id": "p1", "name": "Launch", "url": "u"}},
        "issueBatchCreate": {"success": True, "issues": []},
    }

    await server.linear_create_project_with_issues(
        ProjectInput(name="Launch", teamIds=["t"]),
        [ProjectIssueInput(title="Design", description="d", teamId="t")],
        ctx=_ctx(app_context),
    )

    mock_client.create_project_with_issues.assert_awaited_once_with(
        {"name": "Launch", "teamIds": ["t"]},
        [{"title": "Design", "description": "d", "teamId": "t"}],
    )
