from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..auth import LinearAuth
from ..errors import OperationError
from . import documents
from .documents import GraphQLDocument

logger = logging.getLogger("linear_mcp.graphql")


class LinearGraphQLClient:
    """
    Single point of contact with the Linear GraphQL API.

    Handlers call the named conveniences; each binds its arguments to a fixed
    document and goes through `execute`. There are no retries and no per-call
    timeout overrides: the shared http client's configuration applies.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        auth: LinearAuth,
        api_url: str = "https://api.linear.app/graphql",
    ) -> None:
        self.http_client = http_client
        self.auth = auth
        self.api_url = api_url

    async def execute(
        self,
        document: GraphQLDocument,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(self.auth.authorization_header())

        payload: Dict[str, Any] = {"query": document.source, "operationName": document.name}
        if variables:
            payload["variables"] = variables

        logger.debug(
            f"Executing GraphQL {document.name}",
            extra={"variables": sorted((variables or {}).keys())},
        )

        try:
            response = await self.http_client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise OperationError(f"GraphQL operation failed: {exc}") from exc

        if response.status_code >= 400:
            detail = response.text[:500]
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            if isinstance(error_body, dict) and error_body.get("errors"):
                detail = "; ".join(e.get("message", str(e)) for e in error_body["errors"])
            raise OperationError(f"GraphQL operation failed: HTTP {response.status_code}: {detail}")

        try:
            body = response.json()
        except ValueError as exc:
            raise OperationError(f"GraphQL operation failed: invalid JSON response: {exc}") from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            messages = [e.get("message", str(e)) for e in errors]
            raise OperationError(f"GraphQL operation failed: {'; '.join(messages)}")

        data = body.get("data") if isinstance(body, dict) else None
        return data or {}

    # --- Issues ---

    async def create_issue(self, input: Dict[str, Any]) -> Dict[str, Any]:
        return await self.execute(documents.CREATE_ISSUE, {"input": input})

    async def create_issues(self, issues: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.execute(documents.CREATE_BATCH_ISSUES, {"input": {"issues": issues}})

    create_batch_issues = create_issues

    async def update_issue(self, id: str, input: Dict[str, Any]) -> Dict[str, Any]:
        return await self.execute(documents.UPDATE_ISSUE, {"id": id, "input": input})

    async def delete_issue(self, id: str) -> Dict[str, Any]:
        return await self.execute(documents.DELETE_ISSUE, {"id": id})

    async def get_issue(self, id: str) -> Dict[str, Any]:
        return await self.execute(documents.GET_ISSUE, {"id": id})

    async def search_issues(
        self,
        filter: Dict[str, Any],
        first: int = 50,
        after: Optional[str] = None,
        order_by: str = "updatedAt",
    ) -> Dict[str, Any]:
        variables: Dict[str, Any] = {"filter": filter, "first": first, "orderBy": order_by}
        if after:
            variables["after"] = after
        return await self.execute(documents.SEARCH_ISSUES, variables)

    async def create_issue_labels(self, labels: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self.execute(documents.CREATE_ISSUE_LABELS, {"labels": labels})

    async def file_upload(self, content_type: str, filename: str, size: int) -> Dict[str, Any]:
        return await self.execute(
            documents.FILE_UPLOAD,
            {"contentType": content_type, "filename": filename, "size": size},
        )

    # --- Projects ---

    async def create_project(self, input: Dict[str, Any]) -> Dict[str, Any]:
        return await self.execute(documents.CREATE_PROJECT, {"input": input})

    async def get_project(self, id: str) -> Dict[str, Any]:
        return await self.execute(documents.GET_PROJECT, {"id": id})

    async def search_projects(self, filter: Dict[str, Any]) -> Dict[str, Any]:
        return await self.execute(documents.SEARCH_PROJECTS, {"filter": filter})

    async def create_project_with_issues(
        self,
        project: Dict[str, Any],
        issues: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Create a project, then batch-create its issues under it.

        No issue is created when the project creation reports failure. A
        failed issue batch leaves the new project in place.
        """
        project_result = await self.create_project(project)
        project_create = project_result.get("projectCreate") or {}
        if not project_create.get("success") or not project_create.get("project"):
            raise OperationError("Failed to create project")

        project_id = project_create["project"]["id"]
        issues_with_project = [{**issue, "projectId": project_id} for issue in issues]

        issues_result = await self.create_batch_issues(issues_with_project)
        batch_create = issues_result.get("issueBatchCreate") or {}
        if not batch_create.get("success"):
            raise OperationError("Failed to create issues")

        return {"projectCreate": project_create, "issueBatchCreate": batch_create}

    # --- Teams & users ---

    async def get_teams(self) -> Dict[str, Any]:
        return await self.execute(documents.GET_TEAMS)

    async def get_current_user(self) -> Dict[str, Any]:
        return await self.execute(documents.GET_VIEWER)
