"""Workload accounting over task snapshots.

Weights reflect how much attention a task in each column demands from its
assignee. DONE tasks carry no weight; unassigned tasks and tasks assigned to
users outside the tracked member set are ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from crewboard.models.enums import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from crewboard.services.assignment import TaskSnapshot

DEFAULT_STATUS_WEIGHT = 1.0
STATUS_WEIGHTS: dict[TaskStatus, float] = {
    TaskStatus.IN_PROGRESS: 2.0,
    TaskStatus.IN_REVIEW: 1.5,
    TaskStatus.DONE: 0.0,
}


def status_weight(status: TaskStatus) -> float:
    """Return the workload weight contributed by one task in `status`."""
    return STATUS_WEIGHTS.get(status, DEFAULT_STATUS_WEIGHT)


def compute_workload(tasks: Iterable[TaskSnapshot], member_ids: Iterable[str]) -> dict[str, float]:
    """Sum status weights of assigned tasks per member; every member starts at 0."""
    workload = dict.fromkeys(member_ids, 0.0)
    for task in tasks:
        if task.assignee_id is not None and task.assignee_id in workload:
            workload[task.assignee_id] += status_weight(task.status)
    return workload


def normalize_workload(workload: Mapping[str, float]) -> dict[str, float]:
    """Map raw workload to [0, 1] where 1 is the least loaded member.

    When every member carries the same load (including nobody at all), the
    range collapses and every score is 1.
    """
    if not workload:
        return {}
    low = min(workload.values())
    high = max(workload.values())
    spread = (high - low) or 1.0
    return {member_id: 1 - (value - low) / spread for member_id, value in workload.items()}
