# ruff: noqa: INP001
"""Pytest configuration and shared fixtures for backend tests."""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator
from datetime import date
from pathlib import Path
from uuid import uuid4

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are built at import time; pin deterministic values regardless of shell env.
os.environ["AUTH_MODE"] = "local"
os.environ["LOCAL_AUTH_TOKEN"] = "test-local-token-0123456789-0123456789-0123456789x"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AI_SERVICE_URL"] = "http://ai.test"

import pytest_asyncio  # noqa: E402
from fastapi import APIRouter, FastAPI  # noqa: E402
from fastapi_pagination import add_pagination  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from crewboard import models as _models  # noqa: E402,F401
from crewboard.core.error_handling import install_error_handling  # noqa: E402
from crewboard.db.session import get_session  # noqa: E402
from crewboard.models.enums import MemberRole, TaskStatus  # noqa: E402
from crewboard.models.tasks import Task  # noqa: E402
from crewboard.models.users import User  # noqa: E402
from crewboard.models.workspace_members import WorkspaceMember  # noqa: E402
from crewboard.models.workspaces import Workspace  # noqa: E402
from crewboard.services.ai_matching import get_ai_client  # noqa: E402


async def make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = await make_engine()
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_maker() as db_session:
        yield db_session


async def add_user(session: AsyncSession, name: str = "User") -> User:
    user = User(external_id=f"ext-{uuid4().hex}", email=f"{uuid4().hex}@example.com", name=name)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def add_workspace(session: AsyncSession, owner: User, name: str = "Acme") -> Workspace:
    workspace = Workspace(name=name, invite_code="ABC123", owner_user_id=owner.id)
    session.add(workspace)
    session.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner.id, role=MemberRole.ADMIN))
    await session.commit()
    await session.refresh(workspace)
    return workspace


async def add_member(
    session: AsyncSession,
    workspace: Workspace,
    user: User,
    role: MemberRole = MemberRole.MEMBER,
) -> WorkspaceMember:
    member = WorkspaceMember(workspace_id=workspace.id, user_id=user.id, role=role)
    session.add(member)
    await session.commit()
    await session.refresh(member)
    return member


async def add_task(
    session: AsyncSession,
    workspace: Workspace,
    *,
    name: str = "Task",
    status: TaskStatus = TaskStatus.TODO,
    position: int = 1000,
    assignee: User | None = None,
    depends_on: list[str] | None = None,
) -> Task:
    task = Task(
        workspace_id=workspace.id,
        name=name,
        status=status,
        position=position,
        due_date=date(2030, 1, 1),
        assignee_user_id=assignee.id if assignee else None,
        depends_on=depends_on or [],
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


AUTH_HEADERS = {"Authorization": f"Bearer {os.environ['LOCAL_AUTH_TOKEN']}"}


def build_test_app(
    session_maker: async_sessionmaker[AsyncSession],
    *routers: APIRouter,
    ai_client: object | None = None,
) -> FastAPI:
    """Mount `routers` under /api/v1 with error handling and a test DB session."""
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    for router in routers:
        api_v1.include_router(router)
    app.include_router(api_v1)
    add_pagination(app)

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as db_session:
            yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    if ai_client is not None:
        app.dependency_overrides[get_ai_client] = lambda: ai_client
    return app


def make_client(app: FastAPI) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        headers=AUTH_HEADERS,
    )
