# ruff: noqa: INP001
"""Workload accounting and normalization tests."""

from __future__ import annotations

import pytest

from crewboard.models.enums import TaskStatus
from crewboard.services.assignment import TaskSnapshot
from crewboard.services.workload import compute_workload, normalize_workload, status_weight


def _task(task_id: str, status: TaskStatus, assignee: str | None) -> TaskSnapshot:
    return TaskSnapshot(id=task_id, status=status, assignee_id=assignee)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (TaskStatus.BACKLOG, 1.0),
        (TaskStatus.TODO, 1.0),
        (TaskStatus.IN_PROGRESS, 2.0),
        (TaskStatus.IN_REVIEW, 1.5),
        (TaskStatus.DONE, 0.0),
    ],
)
def test_status_weights(status: TaskStatus, expected: float) -> None:
    assert status_weight(status) == expected


def test_compute_workload_sums_weights_and_ignores_outsiders() -> None:
    tasks = [
        _task("t1", TaskStatus.IN_PROGRESS, "a"),
        _task("t2", TaskStatus.IN_REVIEW, "a"),
        _task("t3", TaskStatus.DONE, "a"),
        _task("t4", TaskStatus.TODO, "b"),
        _task("t5", TaskStatus.TODO, None),
        _task("t6", TaskStatus.IN_PROGRESS, "stranger"),
    ]

    workload = compute_workload(tasks, ["a", "b", "c"])

    assert workload == {"a": 3.5, "b": 1.0, "c": 0.0}


def test_normalize_workload_maps_least_loaded_to_one() -> None:
    normalized = normalize_workload({"a": 4.0, "b": 2.0, "c": 0.0})

    assert normalized == {"a": 0.0, "b": 0.5, "c": 1.0}


def test_normalize_workload_equal_loads_score_one() -> None:
    assert normalize_workload({"a": 2.0, "b": 2.0}) == {"a": 1.0, "b": 1.0}
    assert normalize_workload({"a": 0.0}) == {"a": 1.0}


def test_normalize_workload_empty() -> None:
    assert normalize_workload({}) == {}


def test_idle_members_all_score_one() -> None:
    workload = compute_workload([], ["a", "b", "c"])

    assert normalize_workload(workload) == {"a": 1.0, "b": 1.0, "c": 1.0}
