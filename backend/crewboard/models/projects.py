"""Project model grouping tasks inside a workspace."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from crewboard.core.time import utcnow
from crewboard.models.base import QueryModel
from crewboard.models.enums import ProjectGenerationType

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Project(QueryModel, table=True):
    """Workspace-scoped project, optionally seeded with AI-generated tasks."""

    __tablename__ = "projects"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    name: str
    image_url: str | None = None
    generation_type: ProjectGenerationType = Field(default=ProjectGenerationType.MANUAL)
    prompt: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
