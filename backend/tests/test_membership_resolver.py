# ruff: noqa: INP001
"""Membership resolution across workspace and project scopes."""

from __future__ import annotations

from uuid import uuid4

import pytest
from conftest import add_member, add_user, add_workspace
from sqlmodel.ext.asyncio.session import AsyncSession

from crewboard.core.errors import UnauthorizedError, ValidationFailure
from crewboard.models.projects import Project
from crewboard.schemas.members import MemberAssigneeRef, UserAssigneeRef
from crewboard.services.membership import (
    ProjectScope,
    WorkspaceScope,
    count_admins,
    count_members,
    list_members,
    require_membership,
    resolve_assignee,
    resolve_membership,
    scope_from_ids,
)


def test_scope_requires_exactly_one_id() -> None:
    with pytest.raises(ValidationFailure):
        scope_from_ids()
    with pytest.raises(ValidationFailure):
        scope_from_ids(workspace_id=uuid4(), project_id=uuid4())
    assert isinstance(scope_from_ids(project_id=uuid4()), ProjectScope)


@pytest.mark.asyncio
async def test_resolve_membership_by_workspace_and_project(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    project = Project(workspace_id=workspace.id, name="Launch")
    session.add(project)
    await session.commit()

    by_workspace = await resolve_membership(session, WorkspaceScope(workspace.id), owner.id)
    by_project = await resolve_membership(session, ProjectScope(project.id), owner.id)

    assert by_workspace is not None
    assert by_project is not None
    assert by_workspace.id == by_project.id


@pytest.mark.asyncio
async def test_non_member_resolves_to_none(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    outsider = await add_user(session, "Outsider")
    workspace = await add_workspace(session, owner)

    assert await resolve_membership(session, WorkspaceScope(workspace.id), outsider.id) is None
    assert await resolve_membership(session, ProjectScope(uuid4()), owner.id) is None
    with pytest.raises(UnauthorizedError) as exc_info:
        await require_membership(session, WorkspaceScope(workspace.id), outsider.id)
    assert exc_info.value.code == "not_a_member"


@pytest.mark.asyncio
async def test_counts_and_listing(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    helper = await add_user(session, "Helper")
    await add_member(session, workspace, helper)

    assert await count_members(session, workspace.id) == 2
    assert await count_admins(session, workspace.id) == 1
    rows = await list_members(session, workspace.id)
    assert {user.name for _member, user in rows} == {"Owner", "Helper"}


@pytest.mark.asyncio
async def test_resolve_assignee_accepts_either_reference(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    helper = await add_user(session, "Helper")
    membership = await add_member(session, workspace, helper)
    other_workspace = await add_workspace(session, owner, name="Other")

    by_member = await resolve_assignee(
        session, workspace.id, MemberAssigneeRef(kind="member", id=membership.id)
    )
    by_user = await resolve_assignee(session, workspace.id, UserAssigneeRef(kind="user", id=helper.id))

    assert by_member.id == by_user.id == membership.id
    with pytest.raises(ValidationFailure) as exc_info:
        await resolve_assignee(
            session, other_workspace.id, MemberAssigneeRef(kind="member", id=membership.id)
        )
    assert exc_info.value.code == "assignee_not_member"
