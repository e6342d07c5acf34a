"""Schemas for member skill records and skill-set replacement."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class SkillInput(SQLModel):
    """One skill in a replacement set."""

    name: str = Field(min_length=1, max_length=128)
    category: str = Field(min_length=1, max_length=128)
    experience_years: float = Field(ge=0, le=50)
    proficiency_score: int = Field(ge=0, le=100)


class SkillSetReplace(SQLModel):
    """The complete new skill set of a member; previous skills are discarded."""

    skills: list[SkillInput] = Field(default_factory=list)


class SkillRead(SkillInput):
    """Persisted skill payload."""

    id: UUID
    member_id: UUID
    workspace_id: UUID
    created_at: datetime
    updated_at: datetime
