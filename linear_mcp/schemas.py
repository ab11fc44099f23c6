"""
Argument models for tools that take nested objects.

FastMCP turns these into the tool's input schema, so a batch item without
`teamId` or a project without `teamIds` is rejected before any handler runs.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProjectIssueInput(BaseModel):
    """One issue created under a new project."""

    title: str = Field(..., description="Issue title")
    description: str = Field(..., description="Issue description")
    teamId: str = Field(..., description="Team ID (must match one of the project teamIds)")

    def to_args(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class IssueInput(ProjectIssueInput):
    """One issue in a batch create."""

    teamId: str = Field(..., description="Team ID")
    assigneeId: Optional[str] = Field(default=None, description="Assignee user ID")
    priority: Optional[int] = Field(default=None, description="Issue priority (0-4)")
    projectId: Optional[str] = Field(default=None, description="Project ID")
    labelIds: Optional[List[str]] = Field(default=None, description="Label IDs to apply")


class ProjectInput(BaseModel):
    name: str = Field(..., description="Project name")
    description: Optional[str] = Field(default=None, description="Project description")
    teamIds: List[str] = Field(
        ...,
        min_length=1,
        description="Team IDs this project belongs to. Use linear_get_teams to list them.",
    )

    def to_args(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
