"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from behaviorlog.auth.context import ActorContext, Role
from behaviorlog.auth.passwords import hash_password
from behaviorlog.auth.tokens import issue_token
from behaviorlog.config import Settings
from behaviorlog.db.audit import AuditRecorder
from behaviorlog.db.models import AuditLog, Base, Behavior, Client, Organization, User
from behaviorlog.db.session import Database
from behaviorlog.main import create_app

TEST_PASSWORD = "correct horse battery staple"


@dataclass
class Tenants:
    """Two organizations, X and Y, with members of both roles."""

    org_x: uuid.UUID
    org_y: uuid.UUID
    supervisor_x: ActorContext
    staff_x: ActorContext
    other_staff_x: ActorContext
    supervisor_y: ActorContext
    staff_y: ActorContext
    client_x: uuid.UUID
    behavior_x: uuid.UUID
    client_y: uuid.UUID
    behavior_y: uuid.UUID


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """File-backed database so concurrent sessions share one schema."""
    return f"sqlite+aiosqlite:///{tmp_path / 'behaviorlog.db'}"


@pytest.fixture
def settings(sqlite_url: str) -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url=sqlite_url,
        jwt_secret="test-secret",
        jwt_algorithm="HS256",
    )


@pytest_asyncio.fixture
async def engine(sqlite_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create test async engine with all tables."""
    engine = create_async_engine(sqlite_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def database(engine: AsyncEngine) -> Database:
    return Database(engine, acquire_timeout_s=2.0)


@pytest_asyncio.fixture
async def recorder(database: Database) -> AuditRecorder:
    return AuditRecorder(database)


def _user(org_id: uuid.UUID, email: str, name: str, role: Role) -> User:
    return User(
        id=uuid.uuid4(),
        org_id=org_id,
        email=email,
        display_name=name,
        role=role.value,
        password_hash=hash_password(TEST_PASSWORD, iterations=1_000),
        active=True,
        notify_announcements=True,
    )


def _actor(user: User) -> ActorContext:
    return ActorContext(
        org_id=user.org_id, user_id=user.id, role=Role(user.role), email=user.email
    )


@pytest_asyncio.fixture
async def tenants(engine: AsyncEngine) -> Tenants:
    """Seed organizations X and Y with users, a client and a behavior each."""
    org_x = Organization(id=uuid.uuid4(), name="Org X")
    org_y = Organization(id=uuid.uuid4(), name="Org Y")

    supervisor_x = _user(org_x.id, "sup.x@example.com", "Sam Supervisor", Role.supervisor)
    staff_x = _user(org_x.id, "staff.x@example.com", "Taylor Staff", Role.staff)
    other_staff_x = _user(org_x.id, "staff2.x@example.com", "Jordan Staff", Role.staff)
    supervisor_y = _user(org_y.id, "sup.y@example.com", "Riley Supervisor", Role.supervisor)
    staff_y = _user(org_y.id, "staff.y@example.com", "Casey Staff", Role.staff)

    client_x = Client(id=uuid.uuid4(), org_id=org_x.id, client_code="X-001", display_name="A.B.")
    client_y = Client(id=uuid.uuid4(), org_id=org_y.id, client_code="Y-001", display_name="C.D.")
    behavior_x = Behavior(id=uuid.uuid4(), org_id=org_x.id, name="Elopement")
    behavior_y = Behavior(id=uuid.uuid4(), org_id=org_y.id, name="Aggression")

    async with AsyncSession(engine, expire_on_commit=False) as session:
        session.add_all([org_x, org_y])
        await session.flush()
        session.add_all([supervisor_x, staff_x, other_staff_x, supervisor_y, staff_y])
        await session.flush()
        session.add_all([client_x, client_y, behavior_x, behavior_y])
        await session.commit()

    return Tenants(
        org_x=org_x.id,
        org_y=org_y.id,
        supervisor_x=_actor(supervisor_x),
        staff_x=_actor(staff_x),
        other_staff_x=_actor(other_staff_x),
        supervisor_y=_actor(supervisor_y),
        staff_y=_actor(staff_y),
        client_x=client_x.id,
        behavior_x=behavior_x.id,
        client_y=client_y.id,
        behavior_y=behavior_y.id,
    )


@pytest_asyncio.fixture
async def app(settings: Settings, database: Database) -> FastAPI:
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app without a network."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[ActorContext], dict[str, str]]:
    """Build an Authorization header carrying a signed token for an actor."""

    def _headers(actor: ActorContext) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(actor, settings)}"}

    return _headers


@pytest.fixture
def audit_rows(engine: AsyncEngine) -> Callable[..., Awaitable[list[AuditLog]]]:
    """Read persisted audit rows, bypassing the API. Keyword args filter by column."""

    async def _rows(**filters: object) -> list[AuditLog]:
        stmt = select(AuditLog).order_by(AuditLog.timestamp)
        for name, value in filters.items():
            stmt = stmt.where(getattr(AuditLog, name) == value)
        async with AsyncSession(engine) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    return _rows


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    # Ensure it's a postgres URL
    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    # Convert to async driver if needed
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    yield engine

    await engine.dispose()
