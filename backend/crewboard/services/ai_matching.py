"""HTTP client for the external AI task-generation and skill-matching service.

Every endpoint takes the project id and the acting membership id (the
"manager") alongside its payload. Transport failures, timeouts, non-2xx
responses and malformed bodies all surface as `UpstreamError`; callers decide
whether to swallow them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from crewboard.core.config import settings
from crewboard.core.errors import UpstreamError
from crewboard.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from crewboard.models.member_skills import MemberSkill
    from crewboard.models.tasks import Task

logger = get_logger(__name__)

_ERROR_BODY_LIMIT = 300
DEFAULT_TASK_COMPLEXITY = 5


class RequiredSkill(BaseModel):
    name: str
    category: str = ""
    preferred_experience: float = 0.0
    required_proficiency: float = 0.0


class GeneratedTask(BaseModel):
    """Task as produced by `/generate-tasks` and echoed by the match endpoints."""

    task_id: str
    name: str = ""
    description: str | None = None
    complexity: int = Field(default=DEFAULT_TASK_COMPLEXITY, ge=1, le=10)
    estimated_hours: float = Field(default=0.0, ge=0)
    required_skills: list[RequiredSkill] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)


class SkillProfile(BaseModel):
    name: str
    category: str
    experience_years: float
    proficiency_score: int


class MemberProfile(BaseModel):
    """A workspace member as indexed by the service; `id` is the membership id."""

    id: str
    name: str
    primary_domain: str | None = None
    skills: list[SkillProfile] = Field(default_factory=list)


class UserMatch(BaseModel):
    """One candidate for a task; `user_id` carries the membership id sent at indexing."""

    user_id: str
    name: str = ""
    match_score: float = Field(ge=0, le=1)
    skill_coverage: float = Field(ge=0, le=1)


class MatchedTask(GeneratedTask):
    matched_users: list[UserMatch] = Field(default_factory=list)


class _GeneratedTasksResponse(BaseModel):
    tasks: list[GeneratedTask] = Field(default_factory=list)


class _MatchedTasksResponse(BaseModel):
    tasks: list[MatchedTask] = Field(default_factory=list)


class _TaskMatchResponse(BaseModel):
    matched_users: list[UserMatch] = Field(default_factory=list)


def member_profile(member_id: str, name: str, skills: Sequence[MemberSkill]) -> MemberProfile:
    return MemberProfile(
        id=member_id,
        name=name,
        skills=[
            SkillProfile(
                name=skill.name,
                category=skill.category,
                experience_years=skill.experience_years,
                proficiency_score=skill.proficiency_score,
            )
            for skill in skills
        ],
    )


def task_payload(task: Task) -> GeneratedTask:
    """Describe an existing task in the shape the match endpoints expect."""
    return GeneratedTask(
        task_id=str(task.id),
        name=task.name,
        description=task.description,
        depends_on=[str(dep) for dep in task.depends_on or ()],
    )


class AIMatchingClient:
    """Thin async wrapper over the matching service's JSON endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ai_service_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.ai_service_timeout_seconds
        self._transport = transport

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(endpoint, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("ai.request.timeout", extra={"endpoint": endpoint})
            msg = "AI matching service timed out."
            raise UpstreamError(msg, code="ai_service_unavailable") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "ai.request.unreachable",
                extra={"endpoint": endpoint, "error_type": exc.__class__.__name__},
            )
            msg = "AI matching service is unreachable."
            raise UpstreamError(msg, code="ai_service_unavailable") from exc

        if response.is_error:
            body = response.text[:_ERROR_BODY_LIMIT]
            logger.warning(
                "ai.request.failed",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
            msg = f"AI Service error: {body}"
            raise UpstreamError(msg)
        try:
            return response.json()
        except ValueError as exc:
            msg = "AI matching service returned invalid JSON."
            raise UpstreamError(msg) from exc

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, endpoint: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("ai.response.malformed", extra={"endpoint": endpoint})
            msg = f"AI matching service returned an unexpected payload from {endpoint}."
            raise UpstreamError(msg) from exc

    async def generate_tasks(
        self,
        description: str,
        *,
        project_id: str,
        manager_id: str,
    ) -> list[GeneratedTask]:
        endpoint = "/generate-tasks"
        data = await self._post(
            endpoint,
            {
                "project_description": description,
                "project_id": project_id,
                "manager_id": manager_id,
            },
        )
        return self._parse(_GeneratedTasksResponse, data, endpoint).tasks

    async def index_members(
        self,
        members: Sequence[MemberProfile],
        *,
        project_id: str,
        manager_id: str,
    ) -> None:
        await self._post(
            "/index-users",
            {
                "users": [member.model_dump() for member in members],
                "project_id": project_id,
                "manager_id": manager_id,
            },
        )

    async def index_tasks(
        self,
        tasks: Sequence[GeneratedTask],
        *,
        project_id: str,
        manager_id: str,
    ) -> None:
        await self._post(
            "/index-tasks",
            {
                "tasks": [task.model_dump() for task in tasks],
                "project_id": project_id,
                "manager_id": manager_id,
            },
        )

    async def match_members_for_tasks(
        self,
        tasks: Sequence[GeneratedTask],
        *,
        project_id: str,
        manager_id: str,
    ) -> list[MatchedTask]:
        endpoint = "/match-users-for-tasks"
        data = await self._post(
            endpoint,
            {
                "tasks": [task.model_dump() for task in tasks],
                "project_id": project_id,
                "manager_id": manager_id,
            },
        )
        return self._parse(_MatchedTasksResponse, data, endpoint).tasks

    async def match_members_for_task(
        self,
        task: GeneratedTask,
        *,
        project_id: str,
        manager_id: str,
    ) -> list[UserMatch]:
        endpoint = "/match-user-for-task"
        data = await self._post(
            endpoint,
            {
                "task": task.model_dump(),
                "project_id": project_id,
                "manager_id": manager_id,
            },
        )
        return self._parse(_TaskMatchResponse, data, endpoint).matched_users


def get_ai_client() -> AIMatchingClient:
    """FastAPI dependency returning a client bound to configured settings."""
    return AIMatchingClient()
