"""Closed enumerations for membership roles and task workflow status."""

from __future__ import annotations

from enum import Enum


class MemberRole(str, Enum):
    """Role a user holds inside one workspace."""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class TaskStatus(str, Enum):
    """Board column a task sits in; ordered by workflow, not by value."""

    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


class ProjectGenerationType(str, Enum):
    """How a project's initial task list was produced."""

    MANUAL = "manual"
    AI_GENERATED = "ai_generated"
