# ruff: noqa: TC003
"""Approval ledger: one decision row per (expense, level).

Rows are only ever inserted or moved out of ``pending``; nothing here deletes
them. The conditional ``pending -> actioned`` update in ``record_decision`` is
the single point where two decisions on the same row can collide.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from expenseflow.models.approval_ledger import ApprovalLedgerEntry
from expenseflow.models.base import now_utc
from expenseflow.models.enums import ApprovalAction, ExpenseStatus
from expenseflow.models.expense import Expense

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def initialize(
    session: AsyncSession,
    expense_id: uuid.UUID,
    chain: Sequence[uuid.UUID],
) -> list[ApprovalLedgerEntry]:
    """Add a pending row for every approver in ``chain``.

    Rows are added to the caller's unit of work, so they are committed or
    discarded together with it.
    """
    entries = [
        ApprovalLedgerEntry(
            expense_id=expense_id,
            approver_id=approver_id,
            level=level,
            action=ApprovalAction.PENDING.value,
        )
        for level, approver_id in enumerate(chain, start=1)
    ]
    session.add_all(entries)
    await session.flush()
    return entries


async def find_pending_for(
    session: AsyncSession,
    company_id: uuid.UUID,
    expense_id: uuid.UUID,
    approver_id: uuid.UUID,
) -> tuple[ApprovalLedgerEntry, Expense] | None:
    """Return the approver's pending row on the expense with the expense itself.

    If the approver holds several levels (admin fallback), the lowest pending
    level is returned.
    """
    result = await session.execute(
        select(ApprovalLedgerEntry, Expense)
        .join(Expense, col(Expense.id) == col(ApprovalLedgerEntry.expense_id))
        .where(
            col(ApprovalLedgerEntry.expense_id) == expense_id,
            col(ApprovalLedgerEntry.approver_id) == approver_id,
            col(ApprovalLedgerEntry.action) == ApprovalAction.PENDING.value,
            col(Expense.company_id) == company_id,
        )
        .order_by(col(ApprovalLedgerEntry.level))
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    entry, expense = row
    return entry, expense


async def has_pending_at_level(session: AsyncSession, expense_id: uuid.UUID, level: int) -> bool:
    result = await session.execute(
        select(col(ApprovalLedgerEntry.id)).where(
            col(ApprovalLedgerEntry.expense_id) == expense_id,
            col(ApprovalLedgerEntry.level) == level,
            col(ApprovalLedgerEntry.action) == ApprovalAction.PENDING.value,
        )
    )
    return result.first() is not None


async def record_decision(
    session: AsyncSession,
    entry: ApprovalLedgerEntry,
    action: ApprovalAction,
    comments: str | None,
) -> bool:
    """Move ``entry`` out of pending. Returns False if it had already been actioned."""
    if action == ApprovalAction.PENDING:
        msg = "A decision must approve or reject"
        raise ValueError(msg)

    result = await session.execute(
        update(ApprovalLedgerEntry)
        .where(
            col(ApprovalLedgerEntry.id) == entry.id,
            col(ApprovalLedgerEntry.action) == ApprovalAction.PENDING.value,
        )
        .values(action=action.value, comments=comments, action_at=now_utc())
    )
    # Rows loaded in this session are synchronised by the ORM "evaluate" strategy.
    return result.rowcount == 1  # type: ignore[attr-defined]


async def reject_all_pending(session: AsyncSession, expense_id: uuid.UUID) -> int:
    """Force every pending row of the expense to rejected. Returns the number of rows changed."""
    result = await session.execute(
        update(ApprovalLedgerEntry)
        .where(
            col(ApprovalLedgerEntry.expense_id) == expense_id,
            col(ApprovalLedgerEntry.action) == ApprovalAction.PENDING.value,
        )
        .values(action=ApprovalAction.REJECTED.value, action_at=now_utc())
    )
    return result.rowcount  # type: ignore[attr-defined]


async def list_for_expense(session: AsyncSession, expense_id: uuid.UUID) -> list[ApprovalLedgerEntry]:
    """All rows of the expense ordered by level."""
    result = await session.execute(
        select(ApprovalLedgerEntry)
        .where(col(ApprovalLedgerEntry.expense_id) == expense_id)
        .order_by(col(ApprovalLedgerEntry.level))
    )
    return list(result.scalars().all())


async def list_pending_for_approver(
    session: AsyncSession,
    company_id: uuid.UUID,
    approver_id: uuid.UUID,
) -> list[tuple[ApprovalLedgerEntry, Expense]]:
    """The approver's inbox: pending rows on expenses still in processing, oldest first."""
    result = await session.execute(
        select(ApprovalLedgerEntry, Expense)
        .join(Expense, col(Expense.id) == col(ApprovalLedgerEntry.expense_id))
        .where(
            col(ApprovalLedgerEntry.approver_id) == approver_id,
            col(ApprovalLedgerEntry.action) == ApprovalAction.PENDING.value,
            col(Expense.company_id) == company_id,
            col(Expense.status) == ExpenseStatus.PROCESSING.value,
        )
        .order_by(col(ApprovalLedgerEntry.created_at), col(ApprovalLedgerEntry.level))
    )
    return [(entry, expense) for entry, expense in result.all()]
