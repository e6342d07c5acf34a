"""Skill rows owned by a workspace member."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from crewboard.core.time import utcnow
from crewboard.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class MemberSkill(QueryModel, table=True):
    """One skill of a member; the member's set is always replaced wholesale."""

    __tablename__ = "member_skills"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    member_id: UUID = Field(foreign_key="workspace_members.id", index=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    name: str
    category: str = Field(index=True)
    experience_years: float = Field(default=0.0)
    proficiency_score: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
