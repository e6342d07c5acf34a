"""Membership resolution for workspace- and project-scoped requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import col, select

from crewboard.core.errors import UnauthorizedError, ValidationFailure
from crewboard.models.enums import MemberRole
from crewboard.models.projects import Project
from crewboard.models.users import User
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.schemas.members import MemberAssigneeRef, UserAssigneeRef

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass(frozen=True)
class WorkspaceScope:
    workspace_id: UUID


@dataclass(frozen=True)
class ProjectScope:
    project_id: UUID


Scope = WorkspaceScope | ProjectScope


def scope_from_ids(
    *,
    workspace_id: UUID | None = None,
    project_id: UUID | None = None,
) -> Scope:
    """Build a scope from request parameters; exactly one id must be given."""
    if (workspace_id is None) == (project_id is None):
        msg = "Provide exactly one of workspace_id or project_id."
        raise ValidationFailure(msg, code="invalid_scope")
    if workspace_id is not None:
        return WorkspaceScope(workspace_id)
    return ProjectScope(project_id)  # type: ignore[arg-type]


async def scope_workspace_id(session: AsyncSession, scope: Scope) -> UUID | None:
    """Return the workspace a scope belongs to, or None for an unknown project."""
    if isinstance(scope, WorkspaceScope):
        return scope.workspace_id
    project = await Project.objects.by_id(scope.project_id).first(session)
    return project.workspace_id if project is not None else None


async def get_member(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> WorkspaceMember | None:
    return await WorkspaceMember.objects.filter_by(
        workspace_id=workspace_id,
        user_id=user_id,
    ).first(session)


async def resolve_membership(
    session: AsyncSession,
    scope: Scope,
    user_id: UUID,
) -> WorkspaceMember | None:
    """Find the caller's membership in the scope's workspace.

    Unknown projects and non-members both yield None; this never raises and
    never writes.
    """
    workspace_id = await scope_workspace_id(session, scope)
    if workspace_id is None:
        return None
    return await get_member(session, workspace_id=workspace_id, user_id=user_id)


async def require_membership(
    session: AsyncSession,
    scope: Scope,
    user_id: UUID,
) -> WorkspaceMember:
    """Like `resolve_membership` but raises when the caller is not a member."""
    member = await resolve_membership(session, scope, user_id)
    if member is None:
        msg = "You are not a member of this workspace."
        raise UnauthorizedError(msg, code="not_a_member")
    return member


async def count_members(session: AsyncSession, workspace_id: UUID) -> int:
    return await WorkspaceMember.objects.filter_by(workspace_id=workspace_id).count(session)


async def count_admins(session: AsyncSession, workspace_id: UUID) -> int:
    return await WorkspaceMember.objects.filter_by(
        workspace_id=workspace_id,
        role=MemberRole.ADMIN,
    ).count(session)


async def list_members(
    session: AsyncSession,
    workspace_id: UUID,
) -> list[tuple[WorkspaceMember, User]]:
    """Members of a workspace joined with their user rows, oldest first."""
    statement = (
        select(WorkspaceMember, User)
        .join(User, col(User.id) == col(WorkspaceMember.user_id))
        .where(col(WorkspaceMember.workspace_id) == workspace_id)
        .order_by(col(WorkspaceMember.created_at).asc())
    )
    return [(member, user) for member, user in await session.exec(statement)]


async def resolve_assignee(
    session: AsyncSession,
    workspace_id: UUID,
    ref: MemberAssigneeRef | UserAssigneeRef,
) -> WorkspaceMember:
    """Translate an assignee reference into a membership of `workspace_id`.

    Both variants must name a current member of that workspace.
    """
    member: WorkspaceMember | None
    if isinstance(ref, MemberAssigneeRef):
        member = await WorkspaceMember.objects.by_id(ref.id).first(session)
        if member is not None and member.workspace_id != workspace_id:
            member = None
    else:
        member = await get_member(session, workspace_id=workspace_id, user_id=ref.id)
    if member is None:
        msg = "Assignee is not a member of this workspace."
        raise ValidationFailure(msg, code="assignee_not_member")
    return member
