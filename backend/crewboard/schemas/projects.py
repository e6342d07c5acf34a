"""Schemas for project payloads, including AI-seeded project creation."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from crewboard.models.enums import ProjectGenerationType

RUNTIME_ANNOTATION_TYPES = (datetime, UUID, ProjectGenerationType)


class ProjectCreate(SQLModel):
    """Payload for creating a project; `prompt` is required for AI generation."""

    workspace_id: UUID
    name: str = Field(min_length=1, max_length=256)
    image_url: str | None = None
    generation_type: ProjectGenerationType = ProjectGenerationType.MANUAL
    prompt: str | None = Field(default=None, max_length=10_000)

    @model_validator(mode="after")
    def _require_prompt(self) -> Self:
        self.name = self.name.strip()
        if not self.name:
            msg = "name must not be blank"
            raise ValueError(msg)
        if self.generation_type == ProjectGenerationType.AI_GENERATED and not (
            self.prompt and self.prompt.strip()
        ):
            msg = "prompt is required when generation_type is ai_generated"
            raise ValueError(msg)
        return self


class ProjectUpdate(SQLModel):
    """Partial update payload for project name and image."""

    name: str | None = Field(default=None, min_length=1, max_length=256)
    image_url: str | None = None


class ProjectRead(SQLModel):
    """Project payload returned by read endpoints."""

    id: UUID
    workspace_id: UUID
    name: str
    image_url: str | None = None
    generation_type: ProjectGenerationType
    prompt: str | None = None
    created_at: datetime
    updated_at: datetime
