# ruff: noqa: INP001
"""Whole-set replacement of member skills."""

from __future__ import annotations

import pytest
from conftest import add_user, add_workspace
from sqlmodel.ext.asyncio.session import AsyncSession

from crewboard.models.member_skills import MemberSkill
from crewboard.models.workspace_members import WorkspaceMember
from crewboard.schemas.skills import SkillInput
from crewboard.services.skills import list_member_skills, replace_member_skills


def _skill(name: str, category: str = "Frontend") -> SkillInput:
    return SkillInput(name=name, category=category, experience_years=2, proficiency_score=70)


@pytest.mark.asyncio
async def test_replace_discards_previous_skills(session: AsyncSession) -> None:
    owner = await add_user(session)
    workspace = await add_workspace(session, owner)
    member = await WorkspaceMember.objects.filter_by(workspace_id=workspace.id).first(session)
    assert member is not None

    await replace_member_skills(session, member, [_skill("React")])
    result = await replace_member_skills(session, member, [_skill("Python", "Backend")])

    assert [skill.name for skill in result] == ["Python"]
    stored = await MemberSkill.objects.filter_by(member_id=member.id).all(session)
    assert len(stored) == 1
    assert stored[0].workspace_id == workspace.id


@pytest.mark.asyncio
async def test_replace_with_empty_set_clears(session: AsyncSession) -> None:
    owner = await add_user(session)
    workspace = await add_workspace(session, owner)
    member = await WorkspaceMember.objects.filter_by(workspace_id=workspace.id).first(session)
    assert member is not None

    await replace_member_skills(session, member, [_skill("React"), _skill("CSS")])
    assert len(await list_member_skills(session, member)) == 2

    assert await replace_member_skills(session, member, []) == []


def test_skill_input_bounds() -> None:
    with pytest.raises(ValueError):
        SkillInput(name="Go", category="Backend", experience_years=51, proficiency_score=10)
    with pytest.raises(ValueError):
        SkillInput(name="Go", category="Backend", experience_years=1, proficiency_score=101)
