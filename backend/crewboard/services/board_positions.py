"""Kanban position sequencing and bulk reorder validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from crewboard.core.errors import NotFoundError, ValidationFailure
from crewboard.models.enums import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from uuid import UUID

    from crewboard.models.tasks import Task

POSITION_STEP = 1000
MIN_POSITION = 1000
MAX_POSITION = 1_000_000


def next_position(positions: Iterable[int]) -> int:
    """Position for a task appended to the bottom of a column."""
    highest = max(positions, default=None)
    if highest is None:
        return MIN_POSITION
    return highest + POSITION_STEP


@dataclass(frozen=True)
class ReorderItem:
    """Requested column and position for one task."""

    task_id: UUID
    status: TaskStatus
    position: int


def validate_reorder(items: Sequence[ReorderItem], tasks: Mapping[UUID, Task]) -> UUID:
    """Check a reorder batch and return the single workspace it touches.

    `tasks` maps every task id that exists to its current row. The whole batch
    is rejected if any id is unknown, the tasks span more than one workspace,
    or any position falls outside the allowed range. Positions are not
    renormalised.
    """
    if not items:
        msg = "Reorder request contains no tasks."
        raise ValidationFailure(msg, code="empty_reorder")
    missing = [str(item.task_id) for item in items if item.task_id not in tasks]
    if missing:
        msg = f"Tasks not found: {', '.join(missing)}"
        raise NotFoundError(msg, code="task_not_found")
    for item in items:
        if not MIN_POSITION <= item.position <= MAX_POSITION:
            msg = f"Position {item.position} is outside {MIN_POSITION}..{MAX_POSITION}."
            raise ValidationFailure(msg, code="position_out_of_range")
    workspace_ids = {tasks[item.task_id].workspace_id for item in items}
    if len(workspace_ids) != 1:
        msg = "All tasks must belong to the same workspace."
        raise ValidationFailure(msg, code="mixed_workspaces")
    return workspace_ids.pop()
