"""Member role changes and removal, gated by the membership policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from crewboard.core.errors import NotFoundError
from crewboard.core.logging import get_logger
from crewboard.db import crud
from crewboard.models.member_skills import MemberSkill
from crewboard.models.tasks import Task
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.models.workspaces import Workspace
from crewboard.services.membership import count_admins, count_members, get_member
from crewboard.services.policy import can_change_role, can_remove_member, enforce

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.enums import MemberRole
    from crewboard.models.users import User

logger = get_logger(__name__)


async def get_member_or_404(session: AsyncSession, member_id: UUID) -> WorkspaceMember:
    member = await WorkspaceMember.objects.by_id(member_id).first(session)
    if member is None:
        msg = "Member not found."
        raise NotFoundError(msg, code="member_not_found")
    return member


async def _owner_user_id(session: AsyncSession, workspace_id: UUID) -> UUID:
    workspace = await Workspace.objects.by_id(workspace_id).first(session)
    if workspace is None:
        msg = "Workspace not found."
        raise NotFoundError(msg, code="workspace_not_found")
    return workspace.owner_user_id


async def change_member_role(
    session: AsyncSession,
    *,
    target: WorkspaceMember,
    actor_user: User,
    new_role: MemberRole,
) -> WorkspaceMember:
    """Change a member's role after checking the policy against current state."""
    workspace_id = target.workspace_id
    actor = await get_member(session, workspace_id=workspace_id, user_id=actor_user.id)
    decision = can_change_role(
        actor=actor,
        target=target,
        new_role=new_role,
        member_count=await count_members(session, workspace_id),
        admin_count=await count_admins(session, workspace_id),
        owner_user_id=await _owner_user_id(session, workspace_id),
    )
    enforce(decision)
    if target.role == new_role:
        return target
    updated = await crud.update(session, target, role=new_role)
    logger.info(
        "workspace.member.role_changed",
        extra={
            "workspace_id": str(workspace_id),
            "member_id": str(target.id),
            "role": new_role.value,
        },
    )
    return updated


async def remove_member(
    session: AsyncSession,
    *,
    target: WorkspaceMember,
    actor_user: User,
) -> None:
    """Remove a member, their skills, and unassign their tasks in the workspace."""
    workspace_id = target.workspace_id
    actor = await get_member(session, workspace_id=workspace_id, user_id=actor_user.id)
    decision = can_remove_member(
        actor=actor,
        target=target,
        member_count=await count_members(session, workspace_id),
        owner_user_id=await _owner_user_id(session, workspace_id),
    )
    enforce(decision)

    assigned = await Task.objects.filter_by(
        workspace_id=workspace_id,
        assignee_user_id=target.user_id,
    ).all(session)
    for task in assigned:
        await crud.update(session, task, assignee_user_id=None, commit=False)
    await crud.delete_where(
        session,
        MemberSkill,
        col(MemberSkill.member_id) == target.id,
        commit=False,
    )
    await crud.delete(session, target, commit=False)
    await session.commit()
    logger.info(
        "workspace.member.removed",
        extra={
            "workspace_id": str(workspace_id),
            "member_id": str(target.id),
            "self_removal": actor is not None and actor.id == target.id,
        },
    )
