"""Tests for the in-memory directory and the users API."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from expenseflow.models.enums import UserRole
from expenseflow.services.directory import Directory, InMemoryDirectory
from factories import (
    ADMIN_HEADERS,
    ADMIN_ID,
    COMPANY_ID,
    DIRECTOR_ID,
    EMPLOYEE_HEADERS,
    EMPLOYEE_ID,
    MANAGER_ID,
    OTHER_COMPANY_ID,
    USERS_URL,
    make_user,
)

if TYPE_CHECKING:
    from httpx import AsyncClient


# ---------------------------------------------------------------------------
# InMemoryDirectory
# ---------------------------------------------------------------------------


def test_in_memory_directory_satisfies_protocol() -> None:
    assert isinstance(InMemoryDirectory(), Directory)


async def test_get_user_not_found() -> None:
    svc = InMemoryDirectory()
    assert await svc.get_user(COMPANY_ID, uuid.uuid4()) is None


async def test_seed_and_get_user() -> None:
    svc = InMemoryDirectory()
    user = make_user(EMPLOYEE_ID, manager_id=MANAGER_ID)
    svc.seed(user)
    assert await svc.get_user(COMPANY_ID, EMPLOYEE_ID) == user
    assert await svc.get_user(OTHER_COMPANY_ID, EMPLOYEE_ID) is None


async def test_get_manager(org: InMemoryDirectory) -> None:
    assert await org.get_manager(COMPANY_ID, EMPLOYEE_ID) == MANAGER_ID
    assert await org.get_manager(COMPANY_ID, MANAGER_ID) == DIRECTOR_ID
    assert await org.get_manager(COMPANY_ID, DIRECTOR_ID) is None
    assert await org.get_manager(COMPANY_ID, uuid.uuid4()) is None


async def test_find_active_admin_skips_inactive() -> None:
    svc = InMemoryDirectory()
    retired = uuid.uuid4()
    svc.seed(make_user(retired, UserRole.ADMIN, is_active=False))
    assert await svc.find_active_admin(COMPANY_ID) is None

    svc.seed(make_user(ADMIN_ID, UserRole.ADMIN))
    assert await svc.find_active_admin(COMPANY_ID) == ADMIN_ID


async def test_list_direct_reports(org: InMemoryDirectory) -> None:
    assert await org.list_direct_reports(COMPANY_ID, MANAGER_ID) == [EMPLOYEE_ID]
    assert await org.list_direct_reports(COMPANY_ID, DIRECTOR_ID) == [MANAGER_ID]
    assert await org.list_direct_reports(COMPANY_ID, EMPLOYEE_ID) == []


async def test_company_currency() -> None:
    svc = InMemoryDirectory()
    assert await svc.get_company_currency(COMPANY_ID) is None
    svc.seed_company(COMPANY_ID, "EUR")
    assert await svc.get_company_currency(COMPANY_ID) == "EUR"


# ---------------------------------------------------------------------------
# Users API
# ---------------------------------------------------------------------------


async def test_upsert_and_get_user(async_client: AsyncClient, directory: InMemoryDirectory) -> None:
    resp = await async_client.put(
        f"{USERS_URL}/{EMPLOYEE_ID}",
        json={
            "first_name": "Alice",
            "last_name": "Johnson",
            "email": "alice@example.com",
            "role": "employee",
            "manager_id": str(MANAGER_ID),
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["manager_id"] == str(MANAGER_ID)
    assert await directory.get_manager(COMPANY_ID, EMPLOYEE_ID) == MANAGER_ID

    resp = await async_client.get(f"{USERS_URL}/{EMPLOYEE_ID}", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Alice"


async def test_upsert_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        f"{USERS_URL}/{EMPLOYEE_ID}",
        json={"first_name": "A", "last_name": "B", "email": "a@example.com"},
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 403


async def test_get_unknown_user_404(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{USERS_URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_list_users(async_client: AsyncClient, org: InMemoryDirectory) -> None:
    resp = await async_client.get(USERS_URL, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 4
