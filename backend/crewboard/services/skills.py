"""Member skill listing and whole-set replacement."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from crewboard.core.logging import get_logger
from crewboard.core.time import utcnow
from crewboard.db import crud
from crewboard.models.member_skills import MemberSkill

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

    from crewboard.models.workspace_members import WorkspaceMember
    from crewboard.schemas.skills import SkillInput

logger = get_logger(__name__)


async def list_member_skills(session: AsyncSession, member: WorkspaceMember) -> list[MemberSkill]:
    return await (
        MemberSkill.objects.filter_by(member_id=member.id)
        .order_by(col(MemberSkill.created_at).asc(), col(MemberSkill.name).asc())
        .all(session)
    )


async def replace_member_skills(
    session: AsyncSession,
    member: WorkspaceMember,
    skills: Sequence[SkillInput],
) -> list[MemberSkill]:
    """Overwrite a member's skill set with `skills`.

    The delete and the inserts share one transaction and one commit. On a
    store without transactions a concurrent reader could briefly see an
    empty set.
    """
    await crud.delete_where(
        session,
        MemberSkill,
        col(MemberSkill.member_id) == member.id,
        commit=False,
    )
    now = utcnow()
    created = [
        MemberSkill(
            member_id=member.id,
            workspace_id=member.workspace_id,
            name=skill.name.strip(),
            category=skill.category.strip(),
            experience_years=skill.experience_years,
            proficiency_score=skill.proficiency_score,
            created_at=now,
            updated_at=now,
        )
        for skill in skills
    ]
    session.add_all(created)
    await session.commit()
    logger.info(
        "workspace.member.skills.replaced",
        extra={"member_id": str(member.id), "skill_count": len(created)},
    )
    return await list_member_skills(session, member)
