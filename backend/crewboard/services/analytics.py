"""Month-over-month task counts for workspace and project dashboards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlmodel import col

from crewboard.core.time import utcnow
from crewboard.models.enums import TaskStatus
from crewboard.models.tasks import Task

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass(frozen=True)
class TaskAnalytics:
    task_count: int
    task_difference: int
    assigned_task_count: int
    assigned_task_difference: int
    incomplete_task_count: int
    incomplete_task_difference: int
    completed_task_count: int
    completed_task_difference: int
    overdue_task_count: int
    overdue_task_difference: int


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _previous_month_start(month_start: datetime) -> datetime:
    if month_start.month == 1:
        return month_start.replace(year=month_start.year - 1, month=12)
    return month_start.replace(month=month_start.month - 1)


def _next_month_start(month_start: datetime) -> datetime:
    if month_start.month == 12:
        return month_start.replace(year=month_start.year + 1, month=1)
    return month_start.replace(month=month_start.month + 1)


def compute_task_analytics(
    tasks: Iterable[Task],
    *,
    user_id: UUID,
    now: datetime,
) -> TaskAnalytics:
    """Count tasks created this month versus last month.

    Overdue means not DONE with a due date on or before today.
    """
    this_month = _month_start(now)
    last_month = _previous_month_start(this_month)
    next_month = _next_month_start(this_month)
    today: date = now.date()

    current = [task for task in tasks if this_month <= task.created_at < next_month]
    previous_pool = [task for task in tasks if last_month <= task.created_at < this_month]

    def _count(pool: list[Task], predicate: Callable[[Task], bool]) -> int:
        return sum(1 for task in pool if predicate(task))

    predicates: dict[str, Callable[[Task], bool]] = {
        "task": lambda task: True,
        "assigned_task": lambda task: task.assignee_user_id == user_id,
        "incomplete_task": lambda task: task.status != TaskStatus.DONE,
        "completed_task": lambda task: task.status == TaskStatus.DONE,
        "overdue_task": lambda task: task.status != TaskStatus.DONE and task.due_date <= today,
    }
    values: dict[str, int] = {}
    for name, predicate in predicates.items():
        count = _count(current, predicate)
        values[f"{name}_count"] = count
        values[f"{name}_difference"] = count - _count(previous_pool, predicate)
    return TaskAnalytics(**values)


async def workspace_task_analytics(
    session: AsyncSession,
    *,
    workspace_id: UUID,
    user_id: UUID,
) -> TaskAnalytics:
    """Analytics over tasks filed under any project of the workspace."""
    tasks = await Task.objects.filter(
        col(Task.workspace_id) == workspace_id,
        col(Task.project_id).is_not(None),
    ).all(session)
    return compute_task_analytics(tasks, user_id=user_id, now=utcnow())


async def project_task_analytics(
    session: AsyncSession,
    *,
    project_id: UUID,
    user_id: UUID,
) -> TaskAnalytics:
    tasks = await Task.objects.filter_by(project_id=project_id).all(session)
    return compute_task_analytics(tasks, user_id=user_id, now=utcnow())
