"""Project endpoints, including AI-seeded creation and analytics."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query

from crewboard.api.deps import AI_CLIENT_DEP, SESSION_DEP, USER_DEP
from crewboard.db.pagination import paginate
from crewboard.models.projects import Project
from crewboard.schemas.analytics import TaskAnalyticsRead
from crewboard.schemas.common import OkResponse
from crewboard.schemas.pagination import DefaultLimitOffsetPage
from crewboard.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from crewboard.services import projects as project_service
from crewboard.services.analytics import project_task_analytics

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User
    from crewboard.services.ai_matching import AIMatchingClient

router = APIRouter(prefix="/projects", tags=["projects"])
WORKSPACE_ID_QUERY = Query(...)


@router.get("", response_model=DefaultLimitOffsetPage[ProjectRead])
async def list_projects(
    workspace_id: UUID = WORKSPACE_ID_QUERY,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> LimitOffsetPage[ProjectRead]:
    """List a workspace's projects, newest first."""
    await project_service.require_project_member(session, workspace_id=workspace_id, user=user)
    return await paginate(session, Project, {"workspace_id": workspace_id})


@router.post("", response_model=ProjectRead)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
    ai_client: AIMatchingClient = AI_CLIENT_DEP,
) -> ProjectRead:
    """Create a project; AI generation failures never fail the request."""
    project = await project_service.create_project(
        session,
        ai_client,
        user=user,
        payload=payload,
    )
    return ProjectRead.model_validate(project, from_attributes=True)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> ProjectRead:
    project = await project_service.get_project_or_404(session, project_id)
    await project_service.require_project_member(
        session,
        workspace_id=project.workspace_id,
        user=user,
    )
    return ProjectRead.model_validate(project, from_attributes=True)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> ProjectRead:
    project = await project_service.get_project_or_404(session, project_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name") is None:
        updates.pop("name", None)
    project = await project_service.update_project(
        session,
        project=project,
        user=user,
        updates=updates,
    )
    return ProjectRead.model_validate(project, from_attributes=True)


@router.delete("/{project_id}", response_model=OkResponse)
async def delete_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> OkResponse:
    project = await project_service.get_project_or_404(session, project_id)
    await project_service.delete_project(session, project=project, user=user)
    return OkResponse()


@router.get("/{project_id}/analytics", response_model=TaskAnalyticsRead)
async def get_project_analytics(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskAnalyticsRead:
    project = await project_service.get_project_or_404(session, project_id)
    await project_service.require_project_member(
        session,
        workspace_id=project.workspace_id,
        user=user,
    )
    analytics = await project_task_analytics(session, project_id=project.id, user_id=user.id)
    return TaskAnalyticsRead.model_validate(analytics, from_attributes=True)
