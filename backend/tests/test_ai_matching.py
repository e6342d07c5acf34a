# ruff: noqa: INP001
"""AI matching client request shapes and failure mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from crewboard.core.errors import UpstreamError
from crewboard.services.ai_matching import AIMatchingClient, GeneratedTask, MemberProfile


def _client(handler: httpx.MockTransport) -> AIMatchingClient:
    return AIMatchingClient("http://ai.test/", timeout_seconds=5, transport=handler)


@pytest.mark.asyncio
async def test_generate_tasks_sends_description_and_parses_tasks() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "tasks": [
                    {
                        "task_id": "g1",
                        "name": "Design schema",
                        "complexity": 3,
                        "estimated_hours": 12,
                        "required_skills": [{"name": "SQL", "category": "Backend"}],
                    },
                    {"task_id": "g2", "name": "Build API", "depends_on": ["g1"]},
                ],
            },
        )

    tasks = await _client(httpx.MockTransport(handler)).generate_tasks(
        "A todo app",
        project_id="p1",
        manager_id="m1",
    )

    assert seen["path"] == "/generate-tasks"
    assert seen["body"] == {
        "project_description": "A todo app",
        "project_id": "p1",
        "manager_id": "m1",
    }
    assert [task.task_id for task in tasks] == ["g1", "g2"]
    assert tasks[1].complexity == 5
    assert tasks[1].depends_on == ["g1"]


@pytest.mark.asyncio
async def test_index_and_match_payloads() -> None:
    bodies: dict[str, dict[str, object]] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        bodies[request.url.path] = json.loads(request.content)
        if request.url.path == "/match-user-for-task":
            return httpx.Response(
                200,
                json={
                    "matched_users": [
                        {"user_id": "m-1", "name": "Ada", "match_score": 0.8, "skill_coverage": 0.5},
                    ],
                },
            )
        return httpx.Response(200, json={"status": "ok"})

    client = _client(httpx.MockTransport(handler))
    await client.index_members(
        [MemberProfile(id="m-1", name="Ada")],
        project_id="p1",
        manager_id="m1",
    )
    matches = await client.match_members_for_task(
        GeneratedTask(task_id="t1", name="Fix login"),
        project_id="p1",
        manager_id="m1",
    )

    assert bodies["/index-users"]["users"] == [
        {"id": "m-1", "name": "Ada", "primary_domain": None, "skills": []},
    ]
    assert bodies["/match-user-for-task"]["task"]["task_id"] == "t1"  # type: ignore[index]
    assert matches[0].user_id == "m-1"
    assert matches[0].match_score == 0.8


@pytest.mark.asyncio
async def test_non_2xx_maps_to_upstream_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(UpstreamError) as exc_info:
        await _client(httpx.MockTransport(handler)).generate_tasks(
            "x", project_id="p", manager_id="m"
        )

    assert exc_info.value.message == "AI Service error: boom"
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_transport_failure_maps_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await _client(httpx.MockTransport(handler)).index_tasks(
            [], project_id="p", manager_id="m"
        )

    assert exc_info.value.code == "ai_service_unavailable"


@pytest.mark.asyncio
async def test_malformed_payload_maps_to_upstream_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"tasks": [{"task_id": "t", "matched_users": [{"user_id": "u", "match_score": 7}]}]},
        )

    with pytest.raises(UpstreamError):
        await _client(httpx.MockTransport(handler)).match_members_for_tasks(
            [], project_id="p", manager_id="m"
        )
