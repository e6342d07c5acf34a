"""Schemas for workspace members, role changes and assignee references."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from crewboard.models.enums import MemberRole

RUNTIME_ANNOTATION_TYPES = (datetime, UUID, MemberRole)


class MemberUserRead(SQLModel):
    """Embedded user fields included in member payloads."""

    id: UUID
    email: str | None = None
    name: str | None = None


class MemberRead(SQLModel):
    """Workspace member payload; `id` is the membership id, not the user id."""

    id: UUID
    workspace_id: UUID
    user_id: UUID
    role: MemberRole
    name: str | None = None
    email: str | None = None
    created_at: datetime
    updated_at: datetime


class MemberRoleUpdate(SQLModel):
    """Payload for changing a member's role."""

    role: MemberRole


class MemberAssigneeRef(SQLModel):
    """Assignee given by workspace membership id."""

    kind: Literal["member"] = "member"
    id: UUID


class UserAssigneeRef(SQLModel):
    """Assignee given by global user id."""

    kind: Literal["user"] = "user"
    id: UUID


AssigneeRef = Annotated[
    MemberAssigneeRef | UserAssigneeRef,
    PydanticField(discriminator="kind"),
]


class MemberCountRead(SQLModel):
    """Member count for a scope."""

    total: int = Field(ge=0)
