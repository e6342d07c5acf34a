"""Task model representing board cards and their scheduling metadata."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field

from crewboard.core.time import utcnow
from crewboard.models.base import QueryModel
from crewboard.models.enums import TaskStatus

RUNTIME_ANNOTATION_TYPES = (date, datetime)


class Task(QueryModel, table=True):
    """Workspace-scoped task with board ordering and dependency metadata."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    project_id: UUID | None = Field(default=None, foreign_key="projects.id", index=True)

    name: str
    description: str | None = None
    status: TaskStatus = Field(default=TaskStatus.TODO, index=True)
    # A user id, never a membership id.
    assignee_user_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    position: int = Field(default=0)
    due_date: date

    depends_on: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    ai_suggested_assignees: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
