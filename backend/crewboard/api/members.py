"""Workspace member endpoints: listing, role changes, removal and skills."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query
from fastapi_pagination import paginate as paginate_sequence

from crewboard.api.deps import SESSION_DEP, USER_DEP
from crewboard.schemas.common import OkResponse
from crewboard.schemas.members import MemberRead, MemberRoleUpdate
from crewboard.schemas.pagination import DefaultLimitOffsetPage
from crewboard.schemas.skills import SkillRead, SkillSetReplace
from crewboard.services.members import change_member_role, get_member_or_404, remove_member
from crewboard.services.membership import (
    get_member,
    list_members,
    require_membership,
    scope_from_ids,
)
from crewboard.services.policy import can_manage_skills, enforce
from crewboard.services.skills import list_member_skills, replace_member_skills

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.users import User
    from crewboard.models.workspace_members import WorkspaceMember

router = APIRouter(prefix="/members", tags=["members"])
WORKSPACE_ID_QUERY = Query(default=None)
PROJECT_ID_QUERY = Query(default=None)


def _member_to_read(member: WorkspaceMember, user: User | None) -> MemberRead:
    model = MemberRead.model_validate(member, from_attributes=True)
    if user is not None:
        model.name = user.name or user.email
        model.email = user.email
    return model


@router.get("", response_model=DefaultLimitOffsetPage[MemberRead])
async def list_workspace_members(
    workspace_id: UUID | None = WORKSPACE_ID_QUERY,
    project_id: UUID | None = PROJECT_ID_QUERY,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> LimitOffsetPage[MemberRead]:
    """List members of the workspace given directly or through a project."""
    scope = scope_from_ids(workspace_id=workspace_id, project_id=project_id)
    caller = await require_membership(session, scope, user.id)
    rows = await list_members(session, caller.workspace_id)
    return paginate_sequence([_member_to_read(member, member_user) for member, member_user in rows])


@router.patch("/{member_id}", response_model=MemberRead)
async def update_member_role(
    member_id: UUID,
    payload: MemberRoleUpdate,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> MemberRead:
    """Change a member's role (admins only)."""
    target = await get_member_or_404(session, member_id)
    updated = await change_member_role(
        session,
        target=target,
        actor_user=user,
        new_role=payload.role,
    )
    return _member_to_read(updated, None)


@router.delete("/{member_id}", response_model=OkResponse)
async def delete_member(
    member_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> OkResponse:
    """Remove a member; members may remove themselves, admins anyone but the owner."""
    target = await get_member_or_404(session, member_id)
    await remove_member(session, target=target, actor_user=user)
    return OkResponse()


async def _skills_target(session: AsyncSession, member_id: UUID, user: User) -> WorkspaceMember:
    target = await get_member_or_404(session, member_id)
    actor = await get_member(session, workspace_id=target.workspace_id, user_id=user.id)
    enforce(can_manage_skills(actor=actor, target=target))
    return target


@router.get("/{member_id}/skills", response_model=list[SkillRead])
async def get_member_skills(
    member_id: UUID,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> list[SkillRead]:
    target = await _skills_target(session, member_id, user)
    skills = await list_member_skills(session, target)
    return [SkillRead.model_validate(skill, from_attributes=True) for skill in skills]


@router.put("/{member_id}/skills", response_model=list[SkillRead])
async def put_member_skills(
    member_id: UUID,
    payload: SkillSetReplace,
    session: AsyncSession = SESSION_DEP,
    user: User = USER_DEP,
) -> list[SkillRead]:
    """Replace the member's whole skill set."""
    target = await _skills_target(session, member_id, user)
    skills = await replace_member_skills(session, target, payload.skills)
    return [SkillRead.model_validate(skill, from_attributes=True) for skill in skills]
