"""Workspace lifecycle: creation, invites, joining, updates and deletion."""

from __future__ import annotations

import secrets
import string
from typing import TYPE_CHECKING

from sqlmodel import col, select

from crewboard.core.errors import ConflictError, NotFoundError, ValidationFailure
from crewboard.core.logging import get_logger
from crewboard.core.time import utcnow
from crewboard.db import crud
from crewboard.models.enums import MemberRole
from crewboard.models.member_skills import MemberSkill
from crewboard.models.projects import Project
from crewboard.models.tasks import Task
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.models.workspaces import Workspace
from crewboard.services.membership import get_member
from crewboard.services.policy import can_manage_workspace, enforce

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User

logger = get_logger(__name__)

INVITE_CODE_LENGTH = 6
_INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(_INVITE_CODE_ALPHABET) for _ in range(length))


async def get_workspace_or_404(session: AsyncSession, workspace_id: UUID) -> Workspace:
    workspace = await Workspace.objects.by_id(workspace_id).first(session)
    if workspace is None:
        msg = "Workspace not found."
        raise NotFoundError(msg, code="workspace_not_found")
    return workspace


async def create_workspace(
    session: AsyncSession,
    *,
    user: User,
    name: str,
    image_url: str | None = None,
) -> Workspace:
    """Create a workspace owned by `user`, who becomes its first ADMIN."""
    now = utcnow()
    workspace = Workspace(
        name=name,
        image_url=image_url,
        invite_code=generate_invite_code(),
        owner_user_id=user.id,
        created_at=now,
        updated_at=now,
    )
    session.add(workspace)
    await session.flush()
    session.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user.id,
            role=MemberRole.ADMIN,
            created_at=now,
            updated_at=now,
        ),
    )
    await session.commit()
    await session.refresh(workspace)
    logger.info(
        "workspace.created",
        extra={"workspace_id": str(workspace.id), "user_id": str(user.id)},
    )
    return workspace


async def list_user_workspaces(
    session: AsyncSession,
    user: User,
) -> list[tuple[Workspace, MemberRole]]:
    """Workspaces the user belongs to with their role, newest first."""
    statement = (
        select(Workspace, WorkspaceMember.role)
        .join(WorkspaceMember, col(WorkspaceMember.workspace_id) == col(Workspace.id))
        .where(col(WorkspaceMember.user_id) == user.id)
        .order_by(col(Workspace.created_at).desc())
    )
    return [(workspace, MemberRole(role)) for workspace, role in await session.exec(statement)]


async def join_workspace(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user: User,
    invite_code: str,
) -> WorkspaceMember:
    """Add `user` as a MEMBER when the invite code matches."""
    if not secrets.compare_digest(invite_code.strip().upper(), workspace.invite_code.upper()):
        msg = "Invalid invite code."
        raise ValidationFailure(msg, code="invalid_invite_code")
    existing = await get_member(session, workspace_id=workspace.id, user_id=user.id)
    if existing is not None:
        msg = "You are already a member of this workspace."
        raise ConflictError(msg, code="already_member")
    member = await crud.create(
        session,
        WorkspaceMember,
        workspace_id=workspace.id,
        user_id=user.id,
        role=MemberRole.MEMBER,
    )
    logger.info(
        "workspace.member.joined",
        extra={"workspace_id": str(workspace.id), "user_id": str(user.id)},
    )
    return member


async def _require_manager(session: AsyncSession, workspace: Workspace, user: User) -> None:
    actor = await get_member(session, workspace_id=workspace.id, user_id=user.id)
    enforce(can_manage_workspace(actor=actor))


async def reset_invite_code(session: AsyncSession, *, workspace: Workspace, user: User) -> Workspace:
    await _require_manager(session, workspace, user)
    return await crud.update(session, workspace, invite_code=generate_invite_code())


async def update_workspace(
    session: AsyncSession,
    *,
    workspace: Workspace,
    user: User,
    updates: dict[str, object],
) -> Workspace:
    await _require_manager(session, workspace, user)
    if not updates:
        return workspace
    return await crud.update(session, workspace, **updates)


async def delete_workspace(session: AsyncSession, *, workspace: Workspace, user: User) -> None:
    """Delete a workspace together with its tasks, projects, skills and members."""
    await _require_manager(session, workspace, user)
    workspace_id = workspace.id
    await crud.delete_where(session, Task, col(Task.workspace_id) == workspace_id, commit=False)
    await crud.delete_where(
        session,
        Project,
        col(Project.workspace_id) == workspace_id,
        commit=False,
    )
    await crud.delete_where(
        session,
        MemberSkill,
        col(MemberSkill.workspace_id) == workspace_id,
        commit=False,
    )
    await crud.delete_where(
        session,
        WorkspaceMember,
        col(WorkspaceMember.workspace_id) == workspace_id,
        commit=False,
    )
    await crud.delete(session, workspace, commit=False)
    await session.commit()
    logger.info(
        "workspace.deleted",
        extra={"workspace_id": str(workspace_id), "user_id": str(user.id)},
    )
