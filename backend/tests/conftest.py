from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from expenseflow.db import get_session
from expenseflow.main import app
from expenseflow.models import SQLModel
from expenseflow.models.enums import UserRole
from expenseflow.services.directory import InMemoryDirectory, set_directory
from factories import ADMIN_ID, DIRECTOR_ID, EMPLOYEE_ID, MANAGER_ID, make_user

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Point TEST_DATABASE_URL at a Postgres DSN to run against the production dialect.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on the sqlite driver."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an async engine and ensure tables exist for the duration of a test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        _engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(_engine)
    else:
        _engine = create_async_engine(TEST_DATABASE_URL)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test.

    Session commits and rollbacks act on a SAVEPOINT, so a service that rolls
    back its own unit of work leaves the test's data in place.
    """
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False, join_transaction_mode="create_savepoint")
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryDirectory]:
    """Install a fresh in-memory directory for every test."""
    svc = InMemoryDirectory()
    set_directory(svc)
    yield svc
    set_directory(InMemoryDirectory())


@pytest.fixture
def org(directory: InMemoryDirectory) -> InMemoryDirectory:
    """Seed a reporting line (employee -> manager -> director) and an admin."""
    directory.seed(make_user(ADMIN_ID, UserRole.ADMIN))
    directory.seed(make_user(DIRECTOR_ID, UserRole.MANAGER))
    directory.seed(make_user(MANAGER_ID, UserRole.MANAGER, manager_id=DIRECTOR_ID))
    directory.seed(make_user(EMPLOYEE_ID, UserRole.EMPLOYEE, manager_id=MANAGER_ID))
    return directory
