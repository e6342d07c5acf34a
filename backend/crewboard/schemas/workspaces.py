"""Schemas for workspace create/read/update and invite payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from crewboard.models.enums import MemberRole

RUNTIME_ANNOTATION_TYPES = (datetime, UUID, MemberRole)


def _strip_name(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "name must not be blank"
        raise ValueError(msg)
    return cleaned


class WorkspaceCreate(SQLModel):
    """Payload for creating a workspace; the caller becomes its ADMIN."""

    name: str = Field(min_length=1, max_length=256)
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _strip_name(value)


class WorkspaceUpdate(SQLModel):
    """Partial update payload for workspace name and image."""

    name: str | None = Field(default=None, min_length=1, max_length=256)
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        return None if value is None else _strip_name(value)


class WorkspaceJoin(SQLModel):
    """Invite code presented when joining a workspace."""

    invite_code: str = Field(min_length=1, max_length=32)


class WorkspaceRead(SQLModel):
    """Workspace payload returned by read endpoints."""

    id: UUID
    name: str
    image_url: str | None = None
    invite_code: str
    owner_user_id: UUID
    created_at: datetime
    updated_at: datetime


class WorkspaceListItem(WorkspaceRead):
    """Workspace row including the caller's role in it."""

    role: MemberRole
