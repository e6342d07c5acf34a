"""Workspace membership model linking a user to a workspace with a role."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from crewboard.core.time import utcnow
from crewboard.models.base import QueryModel
from crewboard.models.enums import MemberRole

RUNTIME_ANNOTATION_TYPES = (datetime,)


class WorkspaceMember(QueryModel, table=True):
    """Membership row; its id is distinct from the member's user id."""

    __tablename__ = "workspace_members"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "workspace_id",
            "user_id",
            name="uq_workspace_members_workspace_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    role: MemberRole = Field(default=MemberRole.MEMBER, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
