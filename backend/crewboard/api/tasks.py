"""Task endpoints: CRUD, bulk board reorder and assignee suggestions."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query
from sqlmodel import col

from crewboard.api.deps import AI_CLIENT_DEP, SESSION_DEP, USER_DEP
from crewboard.db.pagination import paginate
from crewboard.models.enums import TaskStatus
from crewboard.models.tasks import Task
from crewboard.schemas.common import OkResponse
from crewboard.schemas.members import MemberUserRead
from crewboard.schemas.pagination import DefaultLimitOffsetPage
from crewboard.schemas.tasks import (
    ApplySuggestion,
    CandidateRead,
    RecommendationRead,
    TaskBulkUpdate,
    TaskBulkUpdateResult,
    TaskCreate,
    TaskDetailRead,
    TaskRead,
    TaskSuggestionsRead,
    TaskUpdate,
)
from crewboard.services import tasks as task_service
from crewboard.services.board_positions import ReorderItem

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User
    from crewboard.services.ai_matching import AIMatchingClient

router = APIRouter(prefix="/tasks", tags=["tasks"])
WORKSPACE_ID_QUERY = Query(...)
PROJECT_ID_QUERY = Query(default=None)
STATUS_QUERY = Query(default=None)
ASSIGNEE_QUERY = Query(default=None)
DUE_DATE_QUERY = Query(default=None)
SEARCH_QUERY = Query(default=None, max_length=256)


def _task_read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_tasks(
    workspace_id: UUID = WORKSPACE_ID_QUERY,
    project_id: UUID | None = PROJECT_ID_QUERY,
    status: TaskStatus | None = STATUS_QUERY,
    assignee_user_id: UUID | None = ASSIGNEE_QUERY,
    due_date: date | None = DUE_DATE_QUERY,
    search: str | None = SEARCH_QUERY,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List workspace tasks, newest first, with optional filters."""
    await task_service.require_reader(session, workspace_id=workspace_id, user=user)
    filters = task_service.list_filters(
        workspace_id=workspace_id,
        project_id=project_id,
        status=status,
        assignee_user_id=assignee_user_id,
    )
    where = []
    if due_date is not None:
        where.append(col(Task.due_date) == due_date)
    if search and search.strip():
        where.append(col(Task.name).ilike(f"%{search.strip()}%"))
    return await paginate(session, Task, filters, where=where)


@router.post("", response_model=TaskRead)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskRead:
    """Create a task at the bottom of its status column."""
    task = await task_service.create_task(session, user=user, payload=payload)
    return _task_read(task)


@router.post("/bulk-update", response_model=TaskBulkUpdateResult)
async def bulk_update_tasks(
    payload: TaskBulkUpdate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskBulkUpdateResult:
    """Move tasks between columns and positions; all-or-nothing, one workspace only."""
    items = [
        ReorderItem(task_id=item.id, status=item.status, position=item.position)
        for item in payload.tasks
    ]
    tasks = await task_service.bulk_reorder(session, user=user, items=items)
    return TaskBulkUpdateResult(tasks=[_task_read(task) for task in tasks])


@router.get("/{task_id}", response_model=TaskDetailRead)
async def get_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskDetailRead:
    """Task with its assignee and unmet prerequisites."""
    task = await task_service.get_task_or_404(session, task_id)
    detail = await task_service.get_task_detail(session, task=task, user=user)
    model = TaskDetailRead.model_validate(task, from_attributes=True)
    if detail.assignee is not None:
        model.assignee = MemberUserRead.model_validate(detail.assignee, from_attributes=True)
    model.blocked_by = detail.blocked_by
    model.ready = detail.ready
    return model


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskRead:
    task = await task_service.get_task_or_404(session, task_id)
    task = await task_service.update_task(session, task=task, user=user, payload=payload)
    return _task_read(task)


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> OkResponse:
    task = await task_service.get_task_or_404(session, task_id)
    await task_service.delete_task(session, task=task, user=user)
    return OkResponse()


@router.get("/{task_id}/suggestions", response_model=TaskSuggestionsRead)
async def get_task_suggestions(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
    ai_client: AIMatchingClient = AI_CLIENT_DEP,
) -> TaskSuggestionsRead:
    """Rank assignee candidates for a task; empty when the AI service is unavailable."""
    task = await task_service.get_task_or_404(session, task_id)
    result = await task_service.suggest_assignee(session, ai_client, task=task, user=user)
    candidates = []
    for candidate in result.candidates:
        member, member_user = result.members_by_user_id[candidate.member_id]
        candidates.append(
            CandidateRead(
                user_id=member.user_id,
                member_id=member.id,
                name=member_user.name or member_user.email,
                match_score=candidate.match_score,
                skill_coverage=candidate.skill_coverage,
                workload=candidate.workload,
                workload_score=candidate.workload_score,
                combined_score=candidate.combined_score,
            ),
        )
    recommendation = None
    if result.recommendation is not None:
        recommendation = RecommendationRead(
            task_id=UUID(result.recommendation.task_id),
            assignee_user_id=UUID(result.recommendation.assignee_id),
            confidence=result.recommendation.confidence,
            reason=result.recommendation.reason,
        )
    return TaskSuggestionsRead(recommendation=recommendation, candidates=candidates)


@router.post("/{task_id}/apply-suggestion", response_model=TaskRead)
async def apply_task_suggestion(
    task_id: UUID,
    payload: ApplySuggestion,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskRead:
    """Assign the task to the chosen candidate."""
    task = await task_service.get_task_or_404(session, task_id)
    task = await task_service.apply_recommendation(
        session,
        task=task,
        user=user,
        assignee=payload.assignee,
    )
    return _task_read(task)
