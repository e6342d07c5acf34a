# ruff: noqa: INP001
"""Month-over-month dashboard counts."""

from __future__ import annotations

from datetime import date, datetime
from uuid import uuid4

from crewboard.models.enums import TaskStatus
from crewboard.models.tasks import Task
from crewboard.services.analytics import compute_task_analytics

NOW = datetime(2026, 3, 15, 12, 0)
USER_ID = uuid4()


def _task(
    created_at: datetime,
    *,
    status: TaskStatus = TaskStatus.TODO,
    assignee: bool = False,
    due: date = date(2026, 4, 1),
) -> Task:
    return Task(
        workspace_id=uuid4(),
        name="t",
        status=status,
        due_date=due,
        assignee_user_id=USER_ID if assignee else None,
        created_at=created_at,
    )


def test_counts_current_month_against_previous() -> None:
    tasks = [
        _task(datetime(2026, 3, 1), assignee=True),
        _task(datetime(2026, 3, 10), status=TaskStatus.DONE),
        _task(datetime(2026, 3, 12), due=date(2026, 3, 15)),
        _task(datetime(2026, 2, 20), status=TaskStatus.DONE, due=date(2026, 2, 1)),
        _task(datetime(2026, 1, 5)),
    ]

    analytics = compute_task_analytics(tasks, user_id=USER_ID, now=NOW)

    assert analytics.task_count == 3
    assert analytics.task_difference == 2
    assert analytics.assigned_task_count == 1
    assert analytics.assigned_task_difference == 1
    assert analytics.incomplete_task_count == 2
    assert analytics.incomplete_task_difference == 2
    assert analytics.completed_task_count == 1
    assert analytics.completed_task_difference == 0
    # Due today counts as overdue; DONE tasks never do.
    assert analytics.overdue_task_count == 1
    assert analytics.overdue_task_difference == 1


def test_january_compares_with_december() -> None:
    tasks = [_task(datetime(2025, 12, 31)), _task(datetime(2026, 1, 2))]

    analytics = compute_task_analytics(tasks, user_id=USER_ID, now=datetime(2026, 1, 10))

    assert analytics.task_count == 1
    assert analytics.task_difference == 0
