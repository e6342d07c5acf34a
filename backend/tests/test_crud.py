# ruff: noqa: INP001
"""Generic CRUD helper tests against in-memory SQLite."""

from __future__ import annotations

import pytest
from conftest import add_task, add_user, add_workspace
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from crewboard.db import crud
from crewboard.models.enums import TaskStatus
from crewboard.models.tasks import Task
from crewboard.models.users import User


@pytest.mark.asyncio
async def test_list_records_filters_and_counts(session: AsyncSession) -> None:
    owner = await add_user(session)
    workspace = await add_workspace(session, owner)
    await add_task(session, workspace, name="a", status=TaskStatus.TODO)
    await add_task(session, workspace, name="b", status=TaskStatus.DONE)
    await add_task(session, workspace, name="c", status=TaskStatus.DONE)

    result = await crud.list_records(
        session,
        Task,
        {"workspace_id": workspace.id, "status": TaskStatus.DONE, "project_id": None},
        limit=1,
        sort={"name": "asc"},
    )

    assert result.total == 2
    assert [task.name for task in result.records] == ["b"]

    any_of = await crud.list_records(
        session,
        Task,
        {"status": [TaskStatus.TODO, TaskStatus.DONE]},
        where=[col(Task.name) != "c"],
    )
    assert any_of.total == 2


@pytest.mark.asyncio
async def test_list_records_rejects_unknown_column(session: AsyncSession) -> None:
    with pytest.raises(ValueError, match="no column"):
        await crud.list_records(session, Task, {"nope": 1})


@pytest.mark.asyncio
async def test_update_and_delete_where(session: AsyncSession) -> None:
    owner = await add_user(session)
    workspace = await add_workspace(session, owner)
    task = await add_task(session, workspace)
    before = task.updated_at

    updated = await crud.update(session, task, name="renamed")
    assert updated.name == "renamed"
    assert updated.updated_at >= before

    await crud.delete_where(session, Task, col(Task.workspace_id) == workspace.id)
    assert await Task.objects.filter_by(workspace_id=workspace.id).count(session) == 0


@pytest.mark.asyncio
async def test_get_or_create_is_idempotent(session: AsyncSession) -> None:
    first, created = await crud.get_or_create(
        session, User, external_id="ext-1", defaults={"name": "One"}
    )
    second, created_again = await crud.get_or_create(session, User, external_id="ext-1")

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert await crud.get(session, User, first.id) is not None


@pytest.mark.asyncio
async def test_timestamps_round_trip_as_naive_utc(session: AsyncSession) -> None:
    owner = await add_user(session)
    workspace = await add_workspace(session, owner)
    task = await add_task(session, workspace)
    task_id, created_at = task.id, task.created_at

    session.expunge_all()
    stored = await crud.get(session, Task, task_id)

    assert stored is not None
    assert stored.created_at.tzinfo is None
    assert stored.created_at == created_at
