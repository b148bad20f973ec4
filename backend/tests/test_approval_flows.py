"""Integration tests for approval flow administration."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from expenseflow.models.audit import AuditLog
from expenseflow.models.enums import AuditAction, AuditEntityType
from expenseflow.services.approval_flow import ranges_overlap
from factories import ADMIN_HEADERS, EMPLOYEE_HEADERS, FLOWS_URL, MANAGER_HEADERS, OTHER_COMPANY_ID

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


async def _create_flow(
    client: AsyncClient,
    min_amount: str = "0",
    max_amount: str | None = "999.99",
    levels: int = 1,
    name: str = "Small spend",
) -> dict[str, Any]:
    resp = await client.post(
        FLOWS_URL,
        json={"name": name, "min_amount": min_amount, "max_amount": max_amount, "approval_levels": levels},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Range overlap (pure)
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        (("0", "999.99"), ("1000", "9999.99"), False),
        (("0", "1000"), ("1000", "9999.99"), True),
        (("0", None), ("5000", "6000"), True),
        (("100", "200"), ("0", "50"), False),
        (("10000", None), ("20000", None), True),
        (("0", "50"), ("60", None), False),
    ],
)
def test_ranges_overlap(a: tuple[str, str | None], b: tuple[str, str | None], expected: bool) -> None:
    def _d(v: str | None) -> Decimal | None:
        return Decimal(v) if v is not None else None

    assert ranges_overlap(Decimal(a[0]), _d(a[1]), Decimal(b[0]), _d(b[1])) is expected
    assert ranges_overlap(Decimal(b[0]), _d(b[1]), Decimal(a[0]), _d(a[1])) is expected


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_flow(async_client: AsyncClient) -> None:
    data = await _create_flow(async_client, "1000", "9999.99", levels=2, name="Medium")
    assert data["name"] == "Medium"
    assert Decimal(data["min_amount"]) == Decimal("1000")
    assert Decimal(data["max_amount"]) == Decimal("9999.99")
    assert data["approval_levels"] == 2
    assert data["is_active"] is True


async def test_create_unbounded_flow(async_client: AsyncClient) -> None:
    data = await _create_flow(async_client, "10000", None, levels=3)
    assert data["max_amount"] is None


async def test_create_adjacent_flows(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "0", "999.99")
    await _create_flow(async_client, "1000", "9999.99", levels=2, name="Medium")
    await _create_flow(async_client, "10000", None, levels=3, name="Large")

    resp = await async_client.get(FLOWS_URL, headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 3


async def test_create_overlapping_flow_rejected(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "0", "1000")
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Overlap", "min_amount": "500", "max_amount": "2000", "approval_levels": 2},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "OverlappingRangeError"
    assert "Small spend" in body["detail"]


async def test_shared_boundary_overlaps(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "0", "1000")
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Touching", "min_amount": "1000", "max_amount": None, "approval_levels": 1},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "OverlappingRangeError"


async def test_unbounded_flow_blocks_higher_ranges(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "5000", None)
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Higher", "min_amount": "100000", "max_amount": "200000", "approval_levels": 1},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "OverlappingRangeError"


async def test_overlap_with_inactive_flow_allowed(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client, "0", "1000")
    await async_client.delete(f"{FLOWS_URL}/{flow['id']}", headers=ADMIN_HEADERS)
    await _create_flow(async_client, "0", "1000", name="Replacement")


async def test_other_company_flows_do_not_overlap(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "0", None)
    other_admin = {**ADMIN_HEADERS, "X-Company-Id": str(OTHER_COMPANY_ID)}
    resp = await async_client.post(
        f"/companies/{OTHER_COMPANY_ID}/approval-flows",
        json={"name": "Other", "min_amount": "0", "max_amount": None, "approval_levels": 1},
        headers=other_admin,
    )
    assert resp.status_code == 201


@pytest.mark.parametrize("levels", [0, 6, -1])
async def test_invalid_levels_rejected(async_client: AsyncClient, levels: int) -> None:
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Bad", "min_amount": "0", "max_amount": "10", "approval_levels": levels},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidLevelsError"


async def test_max_below_min_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Bad", "min_amount": "500", "max_amount": "100", "approval_levels": 1},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInputError"


@pytest.mark.parametrize(
    "body",
    [
        {"name": "Only a name"},
        {"name": "No levels", "min_amount": "0", "max_amount": "100"},
        {"name": "No minimum", "max_amount": "100", "approval_levels": 1},
    ],
)
async def test_create_missing_required_fields_rejected(
    async_client: AsyncClient,
    body: dict[str, Any],
) -> None:
    resp = await async_client.post(FLOWS_URL, json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"

    # Nothing was created, so a catch-all flow can still be added.
    await _create_flow(async_client, "0", None)


@pytest.mark.parametrize("headers", [EMPLOYEE_HEADERS, MANAGER_HEADERS])
async def test_create_requires_admin(async_client: AsyncClient, headers: dict[str, str]) -> None:
    resp = await async_client.post(
        FLOWS_URL,
        json={"name": "Nope", "min_amount": "0", "max_amount": None, "approval_levels": 1},
        headers=headers,
    )
    assert resp.status_code == 403


async def test_company_mismatch_forbidden(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"/companies/{OTHER_COMPANY_ID}/approval-flows", headers=ADMIN_HEADERS)
    assert resp.status_code == 403
    assert resp.json()["error"] == "ForbiddenError"


async def test_create_writes_audit_log(async_client: AsyncClient, db_session: AsyncSession) -> None:
    flow = await _create_flow(async_client)
    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(flow["id"]))
    )
    logs = list(result.scalars().all())
    assert len(logs) == 1
    assert logs[0].entity_type == AuditEntityType.APPROVAL_FLOW
    assert logs[0].action == AuditAction.CREATE


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_get_flow(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.get(f"{FLOWS_URL}/{flow['id']}", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["id"] == flow["id"]


async def test_get_missing_flow_404(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{FLOWS_URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_list_orders_by_min_amount(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "10000", None, name="Large")
    await _create_flow(async_client, "0", "999.99", name="Small")
    resp = await async_client.get(FLOWS_URL, headers=ADMIN_HEADERS)
    names = [f["name"] for f in resp.json()["items"]]
    assert names == ["Small", "Large"]


async def test_list_active_only(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client, "0", "999.99")
    await _create_flow(async_client, "1000", None, name="Rest")
    await async_client.delete(f"{FLOWS_URL}/{flow['id']}", headers=ADMIN_HEADERS)

    resp = await async_client.get(FLOWS_URL, params={"active_only": "true"}, headers=ADMIN_HEADERS)
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["name"] == "Rest"

    resp = await async_client.get(FLOWS_URL, headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 2


# ---------------------------------------------------------------------------
# Update / deactivate
# ---------------------------------------------------------------------------


async def test_update_flow_levels(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.patch(
        f"{FLOWS_URL}/{flow['id']}", json={"approval_levels": 3}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 200
    assert resp.json()["approval_levels"] == 3
    assert Decimal(resp.json()["max_amount"]) == Decimal("999.99")


async def test_update_explicit_null_clears_max(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.patch(f"{FLOWS_URL}/{flow['id']}", json={"max_amount": None}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["max_amount"] is None


async def test_update_into_overlap_rejected(async_client: AsyncClient) -> None:
    await _create_flow(async_client, "0", "999.99")
    medium = await _create_flow(async_client, "1000", "9999.99", name="Medium")
    resp = await async_client.patch(
        f"{FLOWS_URL}/{medium['id']}", json={"min_amount": "500"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "OverlappingRangeError"


async def test_update_own_range_does_not_self_overlap(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client, "0", "999.99")
    resp = await async_client.patch(
        f"{FLOWS_URL}/{flow['id']}", json={"max_amount": "1999.99"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 200


async def test_update_invalid_levels_rejected(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.patch(
        f"{FLOWS_URL}/{flow['id']}", json={"approval_levels": 6}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidLevelsError"


async def test_reactivation_checks_overlap(async_client: AsyncClient) -> None:
    old = await _create_flow(async_client, "0", "1000")
    await async_client.delete(f"{FLOWS_URL}/{old['id']}", headers=ADMIN_HEADERS)
    await _create_flow(async_client, "0", None, name="Replacement")

    resp = await async_client.patch(f"{FLOWS_URL}/{old['id']}", json={"is_active": True}, headers=ADMIN_HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"] == "OverlappingRangeError"


async def test_deactivate_flow(async_client: AsyncClient, db_session: AsyncSession) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.delete(f"{FLOWS_URL}/{flow['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    # Second deactivation is a no-op
    resp = await async_client.delete(f"{FLOWS_URL}/{flow['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200

    result = await db_session.execute(
        select(AuditLog).where(
            col(AuditLog.entity_id) == uuid.UUID(flow["id"]),
            col(AuditLog.action) == AuditAction.DEACTIVATE,
        )
    )
    assert len(list(result.scalars().all())) == 1


async def test_deactivate_requires_admin(async_client: AsyncClient) -> None:
    flow = await _create_flow(async_client)
    resp = await async_client.delete(f"{FLOWS_URL}/{flow['id']}", headers=MANAGER_HEADERS)
    assert resp.status_code == 403
