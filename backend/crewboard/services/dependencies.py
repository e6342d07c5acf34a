"""Readiness checks for tasks with declared prerequisites."""

from __future__ import annotations

from typing import TYPE_CHECKING

from crewboard.models.enums import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from crewboard.services.assignment import TaskSnapshot


def unmet_dependencies(task: TaskSnapshot, all_tasks: Iterable[TaskSnapshot]) -> list[str]:
    """Return prerequisite ids that are not DONE, in declaration order.

    A prerequisite id missing from `all_tasks` counts as unmet.
    """
    if not task.depends_on:
        return []
    status_by_id = {candidate.id: candidate.status for candidate in all_tasks}
    return [
        dependency_id
        for dependency_id in task.depends_on
        if status_by_id.get(dependency_id) != TaskStatus.DONE
    ]


def is_ready(task: TaskSnapshot, all_tasks: Iterable[TaskSnapshot]) -> bool:
    """True when the task has no prerequisites or all of them are DONE."""
    return not unmet_dependencies(task, all_tasks)
