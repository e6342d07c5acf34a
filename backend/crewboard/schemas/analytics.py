"""Month-over-month task analytics payload."""

from __future__ import annotations

from sqlmodel import SQLModel


class TaskAnalyticsRead(SQLModel):
    """Counts for the current month and their difference from last month."""

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
