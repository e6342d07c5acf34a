# ruff: noqa: INP001
"""AI-seeded project creation: task persistence, assignment and failure handling."""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from uuid import uuid4

import pytest
from conftest import add_member, add_user, add_workspace
from sqlmodel.ext.asyncio.session import AsyncSession

from crewboard.core.errors import UnauthorizedError, UpstreamError
from crewboard.core.time import utcnow
from crewboard.models.enums import ProjectGenerationType, TaskStatus
from crewboard.models.projects import Project
from crewboard.models.tasks import Task
from crewboard.schemas.projects import ProjectCreate
from crewboard.services.ai_matching import GeneratedTask, MatchedTask, UserMatch
from crewboard.services.projects import create_project


class _FakeAIClient:
    def __init__(
        self,
        generated: list[GeneratedTask],
        matches: dict[str, list[UserMatch]] | None = None,
        *,
        fail_on: str | None = None,
    ) -> None:
        self.generated = generated
        self.matches = matches or {}
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name == self.fail_on:
            msg = "AI Service error: down"
            raise UpstreamError(msg)

    async def generate_tasks(self, description: str, **_: Any) -> list[GeneratedTask]:
        self._record("generate_tasks")
        return self.generated

    async def index_members(self, members: Any, **_: Any) -> None:
        self._record("index_members")

    async def index_tasks(self, tasks: Any, **_: Any) -> None:
        self._record("index_tasks")

    async def match_members_for_tasks(self, tasks: Any, **_: Any) -> list[MatchedTask]:
        self._record("match_members_for_tasks")
        return [
            MatchedTask(**task.model_dump(), matched_users=self.matches.get(task.task_id, []))
            for task in tasks
        ]


def _payload(workspace_id: Any) -> ProjectCreate:
    return ProjectCreate(
        workspace_id=workspace_id,
        name="Launch",
        generation_type=ProjectGenerationType.AI_GENERATED,
        prompt="Build a landing page",
    )


@pytest.mark.asyncio
async def test_generated_tasks_are_persisted_and_assigned(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    designer = await add_user(session, "Designer")
    designer_membership = await add_member(session, workspace, designer)
    ai_client = _FakeAIClient(
        [
            GeneratedTask(task_id="g1", name="Mockups", estimated_hours=12),
            GeneratedTask(task_id="g2", name="Build page", complexity=7, depends_on=["g1"]),
        ],
        {
            "g1": [
                UserMatch(
                    user_id=str(designer_membership.id),
                    match_score=0.9,
                    skill_coverage=0.9,
                ),
            ],
        },
    )

    project = await create_project(
        session,
        ai_client,  # type: ignore[arg-type]
        user=owner,
        payload=_payload(workspace.id),
    )

    tasks = {
        task.name: task
        for task in await Task.objects.filter_by(project_id=project.id).all(session)
    }
    assert set(tasks) == {"Mockups", "Build page"}
    mockups, build = tasks["Mockups"], tasks["Build page"]

    assert mockups.position == 1000
    assert build.position == 2000
    assert all(task.status == TaskStatus.TODO for task in tasks.values())
    assert mockups.assignee_user_id == designer.id
    assert mockups.ai_suggested_assignees == [str(designer.id)]
    # No match falls back to the creator.
    assert build.assignee_user_id == owner.id
    assert build.depends_on == [str(mockups.id)]
    assert build.description == "Complexity: 7/10, Estimated: 0h"

    today = utcnow().date()
    assert mockups.due_date == today + timedelta(days=2)
    assert build.due_date == today + timedelta(days=7)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failing_call",
    ["index_members", "index_tasks", "match_members_for_tasks"],
)
async def test_generated_tasks_survive_indexing_and_matching_failures(
    session: AsyncSession,
    failing_call: str,
) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    ai_client = _FakeAIClient(
        [GeneratedTask(task_id="g1", name="Mockups")],
        fail_on=failing_call,
    )

    project = await create_project(
        session,
        ai_client,  # type: ignore[arg-type]
        user=owner,
        payload=_payload(workspace.id),
    )

    tasks = await Task.objects.filter_by(project_id=project.id).all(session)
    assert [task.name for task in tasks] == ["Mockups"]
    assert tasks[0].assignee_user_id == owner.id
    assert tasks[0].ai_suggested_assignees == []
    assert ai_client.calls == [
        "generate_tasks",
        "index_members",
        "index_tasks",
        "match_members_for_tasks",
    ]


@pytest.mark.asyncio
async def test_generation_failure_keeps_project_without_tasks(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    ai_client = _FakeAIClient(
        [GeneratedTask(task_id="g1", name="Mockups")],
        fail_on="generate_tasks",
    )

    project = await create_project(
        session,
        ai_client,  # type: ignore[arg-type]
        user=owner,
        payload=_payload(workspace.id),
    )

    assert await Project.objects.by_id(project.id).first(session) is not None
    assert await Task.objects.filter_by(project_id=project.id).count(session) == 0
    assert ai_client.calls == ["generate_tasks"]


@pytest.mark.asyncio
async def test_manual_project_skips_ai(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    workspace = await add_workspace(session, owner)
    ai_client = _FakeAIClient([])

    project = await create_project(
        session,
        ai_client,  # type: ignore[arg-type]
        user=owner,
        payload=ProjectCreate(workspace_id=workspace.id, name="Manual"),
    )

    assert project.generation_type == ProjectGenerationType.MANUAL
    assert ai_client.calls == []


@pytest.mark.asyncio
async def test_non_member_cannot_create_projects(session: AsyncSession) -> None:
    owner = await add_user(session, "Owner")
    outsider = await add_user(session, "Outsider")
    workspace = await add_workspace(session, owner)

    with pytest.raises(UnauthorizedError):
        await create_project(
            session,
            _FakeAIClient([]),  # type: ignore[arg-type]
            user=outsider,
            payload=ProjectCreate(workspace_id=workspace.id, name="Nope"),
        )


def test_ai_generated_project_requires_prompt() -> None:
    with pytest.raises(ValueError, match="prompt is required"):
        ProjectCreate(
            workspace_id=uuid4(),
            name="Launch",
            generation_type=ProjectGenerationType.AI_GENERATED,
        )
