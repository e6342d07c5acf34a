"""Project CRUD and AI-seeded project creation."""

from __future__ import annotations

import math
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlmodel import col

from crewboard.core.config import settings
from crewboard.core.errors import NotFoundError, UpstreamError
from crewboard.core.logging import get_logger
from crewboard.core.time import utcnow
from crewboard.db import crud
from crewboard.models.enums import ProjectGenerationType, TaskStatus
from crewboard.models.member_skills import MemberSkill
from crewboard.models.projects import Project
from crewboard.models.tasks import Task
from crewboard.services.ai_matching import MatchedTask, member_profile
from crewboard.services.assignment import CandidateMatch, TaskSnapshot, recommend_batch
from crewboard.services.board_positions import POSITION_STEP
from crewboard.services.membership import get_member, list_members
from crewboard.services.policy import can_write_tasks, enforce

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User
    from crewboard.models.workspace_members import WorkspaceMember
    from crewboard.schemas.projects import ProjectCreate
    from crewboard.services.ai_matching import AIMatchingClient

logger = get_logger(__name__)


async def get_project_or_404(session: AsyncSession, project_id: UUID) -> Project:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        msg = "Project not found."
        raise NotFoundError(msg, code="project_not_found")
    return project


async def require_project_member(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user: User,
) -> WorkspaceMember:
    actor = await get_member(session, workspace_id=workspace_id, user_id=user.id)
    enforce(can_write_tasks(actor=actor))
    return actor  # type: ignore[return-value]


async def create_project(
    session: AsyncSession,
    ai_client: AIMatchingClient,
    *,
    user: User,
    payload: ProjectCreate,
) -> Project:
    """Create a project, then seed it with AI-generated tasks when requested.

    The project is committed before the AI service is contacted. When task
    generation itself fails the project is kept without tasks.
    """
    actor = await require_project_member(session, workspace_id=payload.workspace_id, user=user)
    project = await crud.create(
        session,
        Project,
        workspace_id=payload.workspace_id,
        name=payload.name,
        image_url=payload.image_url,
        generation_type=payload.generation_type,
        prompt=payload.prompt,
    )
    logger.info(
        "project.created",
        extra={
            "project_id": str(project.id),
            "workspace_id": str(project.workspace_id),
            "generation_type": project.generation_type.value,
        },
    )
    if project.generation_type == ProjectGenerationType.AI_GENERATED and project.prompt:
        try:
            created = await generate_project_tasks(
                session,
                ai_client,
                project=project,
                actor=actor,
                creator=user,
            )
        except UpstreamError as exc:
            logger.warning(
                "ai.project_generation.failed",
                extra={"project_id": str(project.id), "code": exc.code},
            )
        else:
            logger.info(
                "ai.project_generation.completed",
                extra={"project_id": str(project.id), "task_count": created},
            )
    return project


def _due_date(estimated_hours: float, *, today: date) -> date:
    if estimated_hours > 0:
        days = math.ceil(estimated_hours / settings.ai_task_hours_per_day)
    else:
        days = settings.ai_task_default_due_days
    return today + timedelta(days=days)


def _describe(generated: MatchedTask) -> str:
    if generated.description:
        return generated.description
    hours = f"{generated.estimated_hours:g}"
    return f"Complexity: {generated.complexity}/10, Estimated: {hours}h"


async def generate_project_tasks(
    session: AsyncSession,
    ai_client: AIMatchingClient,
    *,
    project: Project,
    actor: WorkspaceMember,
    creator: User,
) -> int:
    """Ask the AI service for a task breakdown and persist it; returns the task count.

    Assignees come from the batch optimizer over the AI matches, falling back
    to the creator when a task has no usable match. Indexing and matching
    failures are logged and treated as zero matches.
    """
    rows = await list_members(session, project.workspace_id)
    members_by_id = {str(member.id): member for member, _user in rows}
    skills = await MemberSkill.objects.filter_by(workspace_id=project.workspace_id).all(session)
    skills_by_member: dict[str, list[MemberSkill]] = {}
    for skill in skills:
        skills_by_member.setdefault(str(skill.member_id), []).append(skill)
    profiles = [
        member_profile(
            str(member.id),
            member_user.name or member_user.email or "Unknown",
            skills_by_member.get(str(member.id), []),
        )
        for member, member_user in rows
    ]

    project_id = str(project.id)
    manager_id = str(actor.id)
    generated = await ai_client.generate_tasks(
        project.prompt or "",
        project_id=project_id,
        manager_id=manager_id,
    )
    if profiles:
        try:
            await ai_client.index_members(profiles, project_id=project_id, manager_id=manager_id)
        except UpstreamError as exc:
            logger.warning(
                "ai.index_members.failed",
                extra={"project_id": project_id, "code": exc.code},
            )
    try:
        await ai_client.index_tasks(generated, project_id=project_id, manager_id=manager_id)
    except UpstreamError as exc:
        logger.warning(
            "ai.index_tasks.failed",
            extra={"project_id": project_id, "code": exc.code},
        )
    try:
        matched = await ai_client.match_members_for_tasks(
            generated,
            project_id=project_id,
            manager_id=manager_id,
        )
    except UpstreamError as exc:
        logger.warning(
            "ai.match_members.failed",
            extra={"project_id": project_id, "code": exc.code},
        )
        # Keep the generated tasks; they fall back to the creator.
        matched = [MatchedTask(**item.model_dump()) for item in generated]

    # Translate membership ids from the matcher into user ids.
    matches_by_task: dict[str, list[CandidateMatch]] = {}
    suggested_by_task: dict[str, list[str]] = {}
    for item in matched:
        candidates = []
        for match in item.matched_users:
            member = members_by_id.get(match.user_id)
            if member is None:
                continue
            candidates.append(
                CandidateMatch(
                    member_id=str(member.user_id),
                    match_score=match.match_score,
                    skill_coverage=match.skill_coverage,
                ),
            )
        matches_by_task[item.task_id] = candidates
        suggested_by_task[item.task_id] = [candidate.member_id for candidate in candidates]

    existing = await Task.objects.filter(
        col(Task.workspace_id) == project.workspace_id,
    ).all(session)
    snapshots = [
        TaskSnapshot(
            id=item.task_id,
            status=TaskStatus.TODO,
            depends_on=tuple(item.depends_on),
        )
        for item in matched
    ]
    user_ids = {str(member.user_id): member.user_id for member in members_by_id.values()}
    recommendations = recommend_batch(
        snapshots,
        matches_by_task,
        list(user_ids),
        existing_tasks=[TaskSnapshot.from_task(task) for task in existing],
    )

    now = utcnow()
    today = now.date()
    created: list[Task] = []
    id_map: dict[str, str] = {}
    for index, item in enumerate(matched):
        recommendation = recommendations.get(item.task_id)
        assignee_user_id = creator.id
        if recommendation is not None:
            assignee_user_id = user_ids[recommendation.assignee_id]
        task = Task(
            workspace_id=project.workspace_id,
            project_id=project.id,
            name=item.name or f"Task {index + 1}",
            description=_describe(item),
            status=TaskStatus.TODO,
            assignee_user_id=assignee_user_id,
            position=(index + 1) * POSITION_STEP,
            due_date=_due_date(item.estimated_hours, today=today),
            depends_on=list(item.depends_on),
            ai_suggested_assignees=suggested_by_task.get(item.task_id, []),
            created_at=now,
            updated_at=now,
        )
        session.add(task)
        created.append(task)
        id_map[item.task_id] = str(task.id)

    # Prerequisites refer to the generator's ids until remapped to stored ones.
    for task in created:
        task.depends_on = [id_map.get(dep, dep) for dep in task.depends_on]
    await session.commit()
    return len(created)


async def update_project(
    session: AsyncSession,
    *,
    project: Project,
    user: User,
    updates: dict[str, object],
) -> Project:
    await require_project_member(session, workspace_id=project.workspace_id, user=user)
    if not updates:
        return project
    return await crud.update(session, project, **updates)


async def delete_project(session: AsyncSession, *, project: Project, user: User) -> None:
    """Delete a project and the tasks filed under it."""
    await require_project_member(session, workspace_id=project.workspace_id, user=user)
    await crud.delete_where(session, Task, col(Task.project_id) == project.id, commit=False)
    await crud.delete(session, project, commit=False)
    await session.commit()
    logger.info("project.deleted", extra={"project_id": str(project.id)})
