# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from expenseflow.config import get_settings
from expenseflow.exceptions import ExpenseLockedError, ForbiddenError, NoApproverAvailableError, NotFoundError
from expenseflow.models.base import now_utc
from expenseflow.models.enums import (
    ApprovalAction,
    AuditAction,
    AuditEntityType,
    ExpenseCategory,
    ExpenseStatus,
    UserRole,
)
from expenseflow.models.expense import Expense
from expenseflow.schemas.approval import ApprovalEntryResponse
from expenseflow.schemas.expense import ExpenseDetailResponse, ExpenseListResponse, ExpenseResponse
from expenseflow.services import ledger, workflow
from expenseflow.services.audit import model_to_audit_dict, write_audit_log
from expenseflow.services.chain_builder import build_approval_chain
from expenseflow.services.flow_selector import select_flow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expenseflow.models.approval_ledger import ApprovalLedgerEntry
    from expenseflow.schemas.auth import AuthContext
    from expenseflow.schemas.expense import CreateExpenseRequest, UpdateExpenseRequest
    from expenseflow.services.directory import Directory

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_expense_response(expense: Expense) -> ExpenseResponse:
    """Map an expense model to its response schema."""
    return ExpenseResponse(
        id=expense.id,
        company_id=expense.company_id,
        user_id=expense.user_id,
        title=expense.title,
        description=expense.description,
        amount=expense.amount,
        currency=expense.currency,
        category=ExpenseCategory(expense.category),
        expense_date=expense.expense_date,
        receipt=expense.receipt,
        status=ExpenseStatus(expense.status),
        current_approval_level=expense.current_approval_level,
        remarks=expense.remarks,
        approval_flow_id=expense.approval_flow_id,
        created_at=expense.created_at,
        updated_at=expense.updated_at,
    )


def build_entry_response(entry: ApprovalLedgerEntry) -> ApprovalEntryResponse:
    """Map a ledger row to its response schema."""
    return ApprovalEntryResponse(
        id=entry.id,
        expense_id=entry.expense_id,
        approver_id=entry.approver_id,
        level=entry.level,
        action=ApprovalAction(entry.action),
        comments=entry.comments,
        action_at=entry.action_at,
        created_at=entry.created_at,
    )


async def get_expense_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    expense_id: uuid.UUID,
) -> Expense:
    """Fetch an expense by ID scoped to company. Raises 404 if not found."""
    result = await session.execute(
        select(Expense).where(
            col(Expense.id) == expense_id,
            col(Expense.company_id) == company_id,
        )
    )
    expense = result.scalar_one_or_none()
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


async def _get_own_pending_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
) -> Expense:
    """Fetch an expense owned by the caller that is still editable."""
    result = await session.execute(
        select(Expense).where(
            col(Expense.id) == expense_id,
            col(Expense.company_id) == auth.company_id,
            col(Expense.user_id) == auth.user_id,
        )
    )
    expense = result.scalar_one_or_none()
    if expense is None:
        raise NotFoundError("Expense not found or not authorized")
    if expense.status != ExpenseStatus.PENDING.value:
        raise ExpenseLockedError("Cannot modify an expense that is already in processing or completed")
    return expense


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_expense(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateExpenseRequest,
    directory: Directory,
) -> ExpenseResponse:
    """Submit an expense and route it into the matching approval flow.

    Flow:
    1. Create the expense tentatively (pending, level 0)
    2. Select the active flow covering the amount
    3. No flow: the expense stays pending
    4. Build the approver chain; if nobody can staff it, delete the
       tentative expense and fail
    5. Insert one pending ledger row per level
    6. Move the expense to processing at level 1
    7. Audit log and commit
    """
    currency = payload.currency or await directory.get_company_currency(auth.company_id)

    # 1. Tentative expense.
    expense = Expense(
        company_id=auth.company_id,
        user_id=auth.user_id,
        title=payload.title,
        description=payload.description,
        amount=payload.amount,
        currency=(currency or get_settings().default_currency).upper(),
        category=payload.category.value,
        expense_date=payload.expense_date,
        receipt=payload.receipt,
        status=ExpenseStatus.PENDING.value,
        current_approval_level=0,
    )
    session.add(expense)
    await session.flush()

    # 2. Flow selection.
    flow = await select_flow(session, auth.company_id, expense.amount)

    # 3-4. Chain building.
    chain: list[uuid.UUID] | None = None
    if flow is not None:
        try:
            chain = await build_approval_chain(directory, auth.company_id, auth.user_id, flow.approval_levels)
        except NoApproverAvailableError:
            logger.warning(
                "No approver available for expense %s (flow %s, %d levels); discarding it",
                expense.id,
                flow.id,
                flow.approval_levels,
            )
            await session.delete(expense)
            await session.flush()
            raise

    transition = workflow.start(chain)

    # 5. Ledger rows.
    for mutation in transition.mutations:
        if isinstance(mutation, workflow.InitializeLedger):
            await ledger.initialize(session, expense.id, mutation.chain)

    # 6. Workflow state.
    for column, value in workflow.columns_for(transition.state).items():
        setattr(expense, column, value)
    if flow is not None:
        expense.approval_flow_id = flow.id
    await session.flush()

    # 7. Audit + commit.
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EXPENSE,
        entity_id=expense.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(expense),
    )
    await session.commit()
    await session.refresh(expense)

    if chain is None:
        logger.info("Expense %s submitted with no matching approval flow", expense.id)
    else:
        logger.info("Expense %s routed through %d approval levels", expense.id, len(chain))
    return build_expense_response(expense)


async def get_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
) -> ExpenseDetailResponse:
    """Get an expense with its approval chain. Employees only see their own."""
    expense = await get_expense_or_404(session, auth.company_id, expense_id)
    if auth.role == UserRole.EMPLOYEE and expense.user_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this expense")

    entries = await ledger.list_for_expense(session, expense.id)
    return ExpenseDetailResponse(
        **build_expense_response(expense).model_dump(),
        approvals=[build_entry_response(e) for e in entries],
    )


async def list_expenses(
    session: AsyncSession,
    auth: AuthContext,
    directory: Directory,
    status_filter: ExpenseStatus | None = None,
    category: ExpenseCategory | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ExpenseListResponse:
    """List expenses visible to the caller, newest first.

    Employees see their own expenses, managers their own plus their direct
    reports', admins the whole company.
    """
    base_filters = [col(Expense.company_id) == auth.company_id]

    if auth.role == UserRole.EMPLOYEE:
        base_filters.append(col(Expense.user_id) == auth.user_id)
    elif auth.role == UserRole.MANAGER:
        reports = await directory.list_direct_reports(auth.company_id, auth.user_id)
        base_filters.append(col(Expense.user_id).in_([auth.user_id, *reports]))

    if status_filter is not None:
        base_filters.append(col(Expense.status) == status_filter.value)
    if category is not None:
        base_filters.append(col(Expense.category) == category.value)
    if start_date is not None:
        base_filters.append(col(Expense.expense_date) >= start_date)
    if end_date is not None:
        base_filters.append(col(Expense.expense_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(Expense).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Expense)
        .where(*base_filters)
        .order_by(col(Expense.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    expenses = list(result.scalars().all())

    return ExpenseListResponse(
        items=[build_expense_response(e) for e in expenses],
        total=total,
    )


async def update_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
    payload: UpdateExpenseRequest,
) -> ExpenseResponse:
    """Edit a pending expense owned by the caller.

    Editing does not re-run flow selection; the expense stays pending.
    """
    expense = await _get_own_pending_expense(session, auth, expense_id)
    before_dict = model_to_audit_dict(expense)

    changes = payload.model_dump(exclude_unset=True)
    for field_name in ("title", "amount", "category", "expense_date"):
        if field_name in changes and changes[field_name] is None:
            changes.pop(field_name)
    if "category" in changes:
        changes["category"] = ExpenseCategory(changes["category"]).value
    for field_name, value in changes.items():
        setattr(expense, field_name, value)
    expense.updated_at = now_utc()

    await session.flush()
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EXPENSE,
        entity_id=expense.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(expense),
    )
    await session.commit()
    await session.refresh(expense)
    return build_expense_response(expense)


async def delete_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
) -> None:
    """Delete a pending expense owned by the caller."""
    expense = await _get_own_pending_expense(session, auth, expense_id)
    before_dict = model_to_audit_dict(expense)

    await session.delete(expense)
    await session.flush()
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EXPENSE,
        entity_id=expense_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
    logger.info("Expense %s deleted by %s", expense_id, auth.user_id)
