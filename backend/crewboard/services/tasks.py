"""Task workflows: CRUD, board reordering and assignee suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from sqlmodel import col

from crewboard.core.errors import NotFoundError, UpstreamError, ValidationFailure
from crewboard.core.logging import get_logger
from crewboard.core.time import utcnow
from crewboard.db import crud
from crewboard.models.member_skills import MemberSkill
from crewboard.models.projects import Project
from crewboard.models.tasks import Task
from crewboard.models.users import User
from crewboard.services.ai_matching import member_profile, task_payload
from crewboard.services.assignment import (
    CandidateMatch,
    Recommendation,
    ScoredCandidate,
    TaskSnapshot,
    rank_candidates,
    recommend_from_ranked,
)
from crewboard.services.board_positions import ReorderItem, next_position, validate_reorder
from crewboard.services.dependencies import unmet_dependencies
from crewboard.services.membership import get_member, list_members, resolve_assignee
from crewboard.services.policy import can_write_tasks, enforce

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.enums import TaskStatus
    from crewboard.models.workspace_members import WorkspaceMember
    from crewboard.schemas.members import MemberAssigneeRef, UserAssigneeRef
    from crewboard.schemas.tasks import TaskCreate, TaskUpdate
    from crewboard.services.ai_matching import AIMatchingClient

logger = get_logger(__name__)


@dataclass
class TaskDetail:
    task: Task
    assignee: User | None
    blocked_by: list[str]

    @property
    def ready(self) -> bool:
        return not self.blocked_by


@dataclass
class SuggestionResult:
    """Recommendation plus ranked candidates, keyed back to memberships."""

    recommendation: Recommendation | None
    candidates: list[ScoredCandidate] = field(default_factory=list)
    members_by_user_id: dict[str, tuple[WorkspaceMember, User]] = field(default_factory=dict)


async def get_task_or_404(session: AsyncSession, task_id: UUID) -> Task:
    task = await Task.objects.by_id(task_id).first(session)
    if task is None:
        msg = "Task not found."
        raise NotFoundError(msg, code="task_not_found")
    return task


async def require_task_writer(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user: User,
) -> WorkspaceMember:
    actor = await get_member(session, workspace_id=workspace_id, user_id=user.id)
    enforce(can_write_tasks(actor=actor))
    return actor  # type: ignore[return-value]


async def _check_project(session: AsyncSession, workspace_id: UUID, project_id: UUID) -> None:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        msg = "Project not found."
        raise NotFoundError(msg, code="project_not_found")
    if project.workspace_id != workspace_id:
        msg = "Project belongs to a different workspace."
        raise ValidationFailure(msg, code="project_not_in_workspace")


def _dependency_ids(task_id: UUID | None, depends_on: Sequence[UUID]) -> list[str]:
    ids: list[str] = []
    for dependency in depends_on:
        if dependency == task_id:
            msg = "A task cannot depend on itself."
            raise ValidationFailure(msg, code="self_dependency")
        if str(dependency) not in ids:
            ids.append(str(dependency))
    return ids


async def _column_positions(
    session: AsyncSession,
    workspace_id: UUID,
    status: TaskStatus,
) -> list[int]:
    tasks = await Task.objects.filter_by(workspace_id=workspace_id, status=status).all(session)
    return [task.position for task in tasks]


async def workspace_snapshots(session: AsyncSession, workspace_id: UUID) -> list[TaskSnapshot]:
    tasks = await Task.objects.filter_by(workspace_id=workspace_id).all(session)
    return [TaskSnapshot.from_task(task) for task in tasks]


async def create_task(session: AsyncSession, *, user: User, payload: TaskCreate) -> Task:
    """Create a task at the bottom of its status column."""
    workspace_id = payload.workspace_id
    await require_task_writer(session, workspace_id=workspace_id, user=user)
    if payload.project_id is not None:
        await _check_project(session, workspace_id, payload.project_id)
    assignee_user_id: UUID | None = None
    if payload.assignee is not None:
        assignee = await resolve_assignee(session, workspace_id, payload.assignee)
        assignee_user_id = assignee.user_id

    position = next_position(await _column_positions(session, workspace_id, payload.status))
    task = await crud.create(
        session,
        Task,
        workspace_id=workspace_id,
        project_id=payload.project_id,
        name=payload.name.strip(),
        description=payload.description,
        status=payload.status,
        assignee_user_id=assignee_user_id,
        position=position,
        due_date=payload.due_date,
        depends_on=_dependency_ids(None, payload.depends_on),
    )
    logger.info(
        "task.created",
        extra={"task_id": str(task.id), "workspace_id": str(workspace_id), "position": position},
    )
    return task


async def update_task(
    session: AsyncSession,
    *,
    task: Task,
    user: User,
    payload: TaskUpdate,
) -> Task:
    """Apply the fields present in `payload`; position is never recomputed."""
    await require_task_writer(session, workspace_id=task.workspace_id, user=user)
    provided = payload.model_fields_set
    updates: dict[str, object] = {}
    if "name" in provided and payload.name is not None:
        updates["name"] = payload.name.strip()
    if "description" in provided:
        updates["description"] = payload.description
    if "status" in provided and payload.status is not None:
        updates["status"] = payload.status
    if "due_date" in provided and payload.due_date is not None:
        updates["due_date"] = payload.due_date
    if "project_id" in provided:
        if payload.project_id is not None:
            await _check_project(session, task.workspace_id, payload.project_id)
        updates["project_id"] = payload.project_id
    if "assignee" in provided:
        if payload.assignee is None:
            updates["assignee_user_id"] = None
        else:
            assignee = await resolve_assignee(session, task.workspace_id, payload.assignee)
            updates["assignee_user_id"] = assignee.user_id
    if "depends_on" in provided and payload.depends_on is not None:
        updates["depends_on"] = _dependency_ids(task.id, payload.depends_on)
    if not updates:
        return task
    return await crud.update(session, task, **updates)


async def delete_task(session: AsyncSession, *, task: Task, user: User) -> None:
    await require_task_writer(session, workspace_id=task.workspace_id, user=user)
    await crud.delete(session, task)
    logger.info("task.deleted", extra={"task_id": str(task.id)})


async def get_task_detail(session: AsyncSession, *, task: Task, user: User) -> TaskDetail:
    """Task with its assignee and any prerequisites that are not DONE yet."""
    await require_task_writer(session, workspace_id=task.workspace_id, user=user)
    assignee = None
    if task.assignee_user_id is not None:
        assignee = await User.objects.by_id(task.assignee_user_id).first(session)
    prerequisites = await _prerequisite_snapshots(session, task)
    blocked_by = unmet_dependencies(TaskSnapshot.from_task(task), prerequisites)
    return TaskDetail(task=task, assignee=assignee, blocked_by=blocked_by)


async def _prerequisite_snapshots(session: AsyncSession, task: Task) -> list[TaskSnapshot]:
    dependency_ids: list[UUID] = []
    for raw in task.depends_on or ():
        try:
            dependency_ids.append(UUID(str(raw)))
        except ValueError:
            # Unparseable ids stay unresolved and count as unmet.
            continue
    if not dependency_ids:
        return []
    rows = await Task.objects.filter(
        col(Task.id).in_(dependency_ids),
        col(Task.workspace_id) == task.workspace_id,
    ).all(session)
    return [TaskSnapshot.from_task(row) for row in rows]


async def bulk_reorder(
    session: AsyncSession,
    *,
    user: User,
    items: Sequence[ReorderItem],
) -> list[Task]:
    """Move tasks to new columns/positions all-or-nothing."""
    ids = [item.task_id for item in items]
    rows = await Task.objects.filter(col(Task.id).in_(ids)).all(session)
    # Tasks outside the caller's workspaces are reported as missing.
    visible: dict[UUID, bool] = {}
    for workspace in {row.workspace_id for row in rows}:
        member = await get_member(session, workspace_id=workspace, user_id=user.id)
        visible[workspace] = member is not None
    tasks_by_id = {row.id: row for row in rows if visible[row.workspace_id]}
    workspace_id = validate_reorder(items, tasks_by_id)
    await require_task_writer(session, workspace_id=workspace_id, user=user)

    now = utcnow()
    for item in items:
        task = tasks_by_id[item.task_id]
        task.status = item.status
        task.position = item.position
        task.updated_at = now
        session.add(task)
    await session.commit()
    for task in tasks_by_id.values():
        await session.refresh(task)
    logger.info(
        "task.bulk_reordered",
        extra={"workspace_id": str(workspace_id), "task_count": len(items)},
    )
    return [tasks_by_id[task_id] for task_id in dict.fromkeys(ids)]


async def suggest_assignee(
    session: AsyncSession,
    ai_client: AIMatchingClient,
    *,
    task: Task,
    user: User,
) -> SuggestionResult:
    """Rank workspace members for `task` using AI matches and current workload.

    An unavailable AI service yields no candidates rather than an error.
    """
    actor = await require_task_writer(session, workspace_id=task.workspace_id, user=user)
    rows = await list_members(session, task.workspace_id)
    members_by_id = {str(member.id): (member, member_user) for member, member_user in rows}
    skills = await MemberSkill.objects.filter_by(workspace_id=task.workspace_id).all(session)
    skills_by_member: dict[str, list[MemberSkill]] = {}
    for skill in skills:
        skills_by_member.setdefault(str(skill.member_id), []).append(skill)

    project_id = str(task.project_id or task.workspace_id)
    manager_id = str(actor.id)
    profiles = [
        member_profile(
            member_id,
            member_user.name or member_user.email or "Unknown",
            skills_by_member.get(member_id, []),
        )
        for member_id, (_member, member_user) in members_by_id.items()
    ]
    if profiles:
        try:
            await ai_client.index_members(profiles, project_id=project_id, manager_id=manager_id)
        except UpstreamError as exc:
            logger.warning(
                "ai.index_members.failed",
                extra={"task_id": str(task.id), "code": exc.code},
            )
    try:
        matches = await ai_client.match_members_for_task(
            task_payload(task),
            project_id=project_id,
            manager_id=manager_id,
        )
    except UpstreamError as exc:
        logger.warning(
            "ai.suggestions.failed",
            extra={"task_id": str(task.id), "code": exc.code},
        )
        matches = []

    # Matches are keyed by membership id; everything past here uses user ids.
    candidates: list[CandidateMatch] = []
    seen: set[str] = set()
    for match in matches:
        row = members_by_id.get(match.user_id)
        if row is None or match.user_id in seen:
            continue
        seen.add(match.user_id)
        candidates.append(
            CandidateMatch(
                member_id=str(row[0].user_id),
                match_score=match.match_score,
                skill_coverage=match.skill_coverage,
            ),
        )

    members_by_user_id = {str(member.user_id): (member, u) for member, u in members_by_id.values()}
    if not candidates:
        return SuggestionResult(recommendation=None, members_by_user_id=members_by_user_id)

    all_tasks = await workspace_snapshots(session, task.workspace_id)
    member_ids = list(members_by_user_id)
    ranked = rank_candidates(candidates, all_tasks, member_ids)
    recommendation = recommend_from_ranked(TaskSnapshot.from_task(task), ranked, all_tasks)
    return SuggestionResult(
        recommendation=recommendation,
        candidates=ranked,
        members_by_user_id=members_by_user_id,
    )


async def apply_recommendation(
    session: AsyncSession,
    *,
    task: Task,
    user: User,
    assignee: MemberAssigneeRef | UserAssigneeRef,
) -> Task:
    """Write the chosen assignee back to the task."""
    await require_task_writer(session, workspace_id=task.workspace_id, user=user)
    member = await resolve_assignee(session, task.workspace_id, assignee)
    updated = await crud.update(session, task, assignee_user_id=member.user_id)
    logger.info(
        "task.assignee.applied",
        extra={"task_id": str(task.id), "assignee_user_id": str(member.user_id)},
    )
    return updated


def list_filters(
    *,
    workspace_id: UUID,
    project_id: UUID | None = None,
    status: TaskStatus | None = None,
    assignee_user_id: UUID | None = None,
) -> dict[str, object]:
    return {
        "workspace_id": workspace_id,
        "project_id": project_id,
        "status": status,
        "assignee_user_id": assignee_user_id,
    }


async def require_reader(session: AsyncSession, *, workspace_id: UUID, user: User) -> None:
    """Listing tasks needs the same membership as writing them."""
    await require_task_writer(session, workspace_id=workspace_id, user=user)

