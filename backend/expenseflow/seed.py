"""Seed script for development data.

Run with:  python -m expenseflow.seed
Against another host:  python -m expenseflow.seed http://api:8000

Creates a small reporting line (admin, director, manager, two employees),
three non-overlapping approval flows and a few expenses that land in each
flow, then walks one of them through its approvals.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date

import httpx

BASE_URL = "http://localhost:8000"
COMPANY_ID = "00000000-0000-0000-0000-000000000001"

ADMIN_ID = "00000000-0000-0000-0000-000000000001"
DIRECTOR_ID = "00000000-0000-0000-0000-000000000002"
MANAGER_ID = "00000000-0000-0000-0000-000000000003"
ALICE_ID = "00000000-0000-0000-0000-000000000004"
BOB_ID = "00000000-0000-0000-0000-000000000005"

USERS = [
    {"id": ADMIN_ID, "first_name": "Ada", "last_name": "Admin", "role": "admin", "manager_id": None},
    {"id": DIRECTOR_ID, "first_name": "Dana", "last_name": "Director", "role": "manager", "manager_id": None},
    {"id": MANAGER_ID, "first_name": "Max", "last_name": "Manager", "role": "manager", "manager_id": DIRECTOR_ID},
    {"id": ALICE_ID, "first_name": "Alice", "last_name": "Johnson", "role": "employee", "manager_id": MANAGER_ID},
    {"id": BOB_ID, "first_name": "Bob", "last_name": "Smith", "role": "employee", "manager_id": MANAGER_ID},
]

FLOWS = [
    {"name": "Small spend", "min_amount": "0", "max_amount": "999.99", "approval_levels": 1},
    {"name": "Medium spend", "min_amount": "1000", "max_amount": "9999.99", "approval_levels": 2},
    {"name": "Large spend", "min_amount": "10000", "max_amount": None, "approval_levels": 3},
]


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Company-Id": COMPANY_ID,
        "X-User-Id": user_id,
        "X-Role": role,
    }


ADMIN_HEADERS = _headers(ADMIN_ID, "admin")


async def _seed_users(client: httpx.AsyncClient) -> None:
    for user in USERS:
        body = {k: v for k, v in user.items() if k != "id"}
        body["email"] = f"{user['first_name'].lower()}@example.com"
        resp = await client.put(f"/companies/{COMPANY_ID}/users/{user['id']}", json=body, headers=ADMIN_HEADERS)
        resp.raise_for_status()
        print(f"  user {user['first_name']} ({user['role']})")


async def _seed_flows(client: httpx.AsyncClient) -> None:
    for flow in FLOWS:
        resp = await client.post(f"/companies/{COMPANY_ID}/approval-flows", json=flow, headers=ADMIN_HEADERS)
        if resp.status_code == 400 and resp.json().get("error") == "OverlappingRangeError":
            print(f"  flow {flow['name']} already exists, skipping")
            continue
        resp.raise_for_status()
        print(f"  flow {flow['name']} -> {flow['approval_levels']} level(s)")


async def _submit(client: httpx.AsyncClient, user_id: str, title: str, amount: str, category: str) -> dict:
    resp = await client.post(
        f"/companies/{COMPANY_ID}/expenses",
        json={
            "title": title,
            "amount": amount,
            "category": category,
            "expense_date": date.today().isoformat(),
        },
        headers=_headers(user_id, "employee"),
    )
    resp.raise_for_status()
    expense: dict = resp.json()
    print(f"  expense {title!r} ({amount}) -> {expense['status']} at level {expense['current_approval_level']}")
    return expense


async def seed(base_url: str) -> None:
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        print("Seeding users...")
        await _seed_users(client)
        print("Seeding approval flows...")
        await _seed_flows(client)

        print("Submitting expenses...")
        await _submit(client, ALICE_ID, "Team lunch", "84.50", "food")
        hotel = await _submit(client, BOB_ID, "Conference hotel", "1850.00", "accommodation")
        await _submit(client, ALICE_ID, "Offsite venue", "12500.00", "travel")

        print("Walking the hotel expense through approval...")
        for approver_id in (MANAGER_ID, DIRECTOR_ID):
            resp = await client.post(
                f"/companies/{COMPANY_ID}/approvals/{hotel['id']}/approve",
                json={"comments": "ok"},
                headers=_headers(approver_id, "manager"),
            )
            resp.raise_for_status()
            print(f"  approved by {approver_id}: status={resp.json()['status']}")


def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    try:
        asyncio.run(seed(base_url))
    except httpx.HTTPError as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
