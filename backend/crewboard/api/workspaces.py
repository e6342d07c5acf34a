"""Workspace endpoints: lifecycle, invites and dashboard analytics."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter
from fastapi_pagination import paginate as paginate_sequence

from crewboard.api.deps import SESSION_DEP, USER_DEP
from crewboard.schemas.analytics import TaskAnalyticsRead
from crewboard.schemas.common import OkResponse
from crewboard.schemas.pagination import DefaultLimitOffsetPage
from crewboard.schemas.workspaces import (
    WorkspaceCreate,
    WorkspaceJoin,
    WorkspaceListItem,
    WorkspaceRead,
    WorkspaceUpdate,
)
from crewboard.services import workspaces as workspace_service
from crewboard.services.analytics import workspace_task_analytics
from crewboard.services.membership import WorkspaceScope, require_membership

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("", response_model=DefaultLimitOffsetPage[WorkspaceListItem])
async def list_workspaces(
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> LimitOffsetPage[WorkspaceListItem]:
    """List workspaces the caller belongs to, newest first."""
    rows = await workspace_service.list_user_workspaces(session, user)
    items = [
        WorkspaceListItem.model_validate(
            {**workspace.model_dump(), "role": role},
        )
        for workspace, role in rows
    ]
    return paginate_sequence(items)


@router.post("", response_model=WorkspaceRead)
async def create_workspace(
    payload: WorkspaceCreate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> WorkspaceRead:
    """Create a workspace; the caller becomes its owner and first admin."""
    workspace = await workspace_service.create_workspace(
        session,
        user=user,
        name=payload.name,
        image_url=payload.image_url,
    )
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.get("/{workspace_id}", response_model=WorkspaceRead)
async def get_workspace(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> WorkspaceRead:
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    await require_membership(session, WorkspaceScope(workspace.id), user.id)
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.patch("/{workspace_id}", response_model=WorkspaceRead)
async def update_workspace(
    workspace_id: UUID,
    payload: WorkspaceUpdate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> WorkspaceRead:
    """Rename a workspace or change its image (admins only)."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name") is None:
        updates.pop("name", None)
    workspace = await workspace_service.update_workspace(
        session,
        workspace=workspace,
        user=user,
        updates=updates,
    )
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.delete("/{workspace_id}", response_model=OkResponse)
async def delete_workspace(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> OkResponse:
    """Delete a workspace and everything in it (admins only)."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    await workspace_service.delete_workspace(session, workspace=workspace, user=user)
    return OkResponse()


@router.post("/{workspace_id}/join", response_model=WorkspaceRead)
async def join_workspace(
    workspace_id: UUID,
    payload: WorkspaceJoin,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> WorkspaceRead:
    """Join a workspace with its invite code."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    await workspace_service.join_workspace(
        session,
        workspace=workspace,
        user=user,
        invite_code=payload.invite_code,
    )
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.post("/{workspace_id}/reset-invite-code", response_model=WorkspaceRead)
async def reset_invite_code(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> WorkspaceRead:
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    workspace = await workspace_service.reset_invite_code(session, workspace=workspace, user=user)
    return WorkspaceRead.model_validate(workspace, from_attributes=True)


@router.get("/{workspace_id}/analytics", response_model=TaskAnalyticsRead)
async def get_workspace_analytics(
    workspace_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> TaskAnalyticsRead:
    """This month's task counts against last month's for the workspace."""
    workspace = await workspace_service.get_workspace_or_404(session, workspace_id)
    await require_membership(session, WorkspaceScope(workspace.id), user.id)
    analytics = await workspace_task_analytics(
        session,
        workspace_id=workspace.id,
        user_id=user.id,
    )
    return TaskAnalyticsRead.model_validate(analytics, from_attributes=True)
