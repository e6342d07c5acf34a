"""Schemas for task CRUD, board reordering and assignment suggestions."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from crewboard.models.enums import TaskStatus
from crewboard.schemas.members import AssigneeRef, MemberUserRead
from crewboard.services.board_positions import MAX_POSITION, MIN_POSITION

RUNTIME_ANNOTATION_TYPES = (date, datetime, UUID, TaskStatus)


class TaskCreate(SQLModel):
    """Payload for creating a task; position is assigned by the server."""

    workspace_id: UUID
    project_id: UUID | None = None
    name: str = Field(min_length=1, max_length=512)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    due_date: date
    assignee: AssigneeRef | None = None
    depends_on: list[UUID] = Field(default_factory=list)


class TaskUpdate(SQLModel):
    """Partial task update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=512)
    description: str | None = None
    status: TaskStatus | None = None
    project_id: UUID | None = None
    due_date: date | None = None
    assignee: AssigneeRef | None = None
    depends_on: list[UUID] | None = None


class TaskRead(SQLModel):
    """Task payload returned by read endpoints."""

    id: UUID
    workspace_id: UUID
    project_id: UUID | None = None
    name: str
    description: str | None = None
    status: TaskStatus
    assignee_user_id: UUID | None = None
    position: int
    due_date: date
    depends_on: list[str] = Field(default_factory=list)
    ai_suggested_assignees: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskDetailRead(TaskRead):
    """Single task view with the resolved assignee and blocking prerequisites."""

    assignee: MemberUserRead | None = None
    ready: bool = True
    blocked_by: list[str] = Field(default_factory=list)


class TaskReorderItem(SQLModel):
    """Target column and position of one task in a bulk reorder."""

    id: UUID
    status: TaskStatus
    position: int = Field(ge=MIN_POSITION, le=MAX_POSITION)


class TaskBulkUpdate(SQLModel):
    """Bulk reorder request; applied all-or-nothing."""

    tasks: list[TaskReorderItem] = Field(min_length=1)


class TaskBulkUpdateResult(SQLModel):
    """Tasks as persisted after a bulk reorder."""

    tasks: list[TaskRead]


class CandidateRead(SQLModel):
    """One ranked assignee candidate."""

    user_id: UUID
    member_id: UUID
    name: str | None = None
    match_score: float
    skill_coverage: float
    workload: float
    workload_score: float
    combined_score: float


class RecommendationRead(SQLModel):
    """Best assignee suggestion for a task."""

    task_id: UUID
    assignee_user_id: UUID
    confidence: float = Field(ge=0, le=1)
    reason: str


class TaskSuggestionsRead(SQLModel):
    """Recommendation plus the full ranked candidate list."""

    recommendation: RecommendationRead | None = None
    candidates: list[CandidateRead] = Field(default_factory=list)


class ApplySuggestion(SQLModel):
    """The assignee chosen from a suggestion list."""

    assignee: AssigneeRef
