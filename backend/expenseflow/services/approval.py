# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import col

from expenseflow.exceptions import ForbiddenError, NotFoundOrNotAuthorizedError, StaleApprovalLevelError
from expenseflow.models.base import now_utc
from expenseflow.models.enums import AuditAction, AuditEntityType, ExpenseCategory, UserRole
from expenseflow.models.expense import Expense
from expenseflow.schemas.approval import (
    ApprovalEntryResponse,
    PendingApprovalListResponse,
    PendingApprovalResponse,
)
from expenseflow.services import ledger, workflow
from expenseflow.services.audit import model_to_audit_dict, write_audit_log
from expenseflow.services.expense import build_entry_response, build_expense_response, get_expense_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expenseflow.models.approval_ledger import ApprovalLedgerEntry
    from expenseflow.schemas.approval import DecisionPayload
    from expenseflow.schemas.auth import AuthContext
    from expenseflow.schemas.expense import ExpenseResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _find_pending_or_404(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
) -> tuple[ApprovalLedgerEntry, Expense]:
    found = await ledger.find_pending_for(session, auth.company_id, expense_id, auth.user_id)
    if found is None:
        raise NotFoundOrNotAuthorizedError("Pending approval not found or not authorized")
    return found


async def _compare_and_swap_state(
    session: AsyncSession,
    expense: Expense,
    state: workflow.WorkflowState,
) -> bool:
    """Write the workflow columns only if nobody else moved the expense since it was read."""
    seen_revision = expense.revision
    result = await session.execute(
        update(Expense)
        .where(
            col(Expense.id) == expense.id,
            col(Expense.revision) == seen_revision,
        )
        .values(**workflow.columns_for(state), revision=seen_revision + 1, updated_at=now_utc())
    )
    return result.rowcount == 1  # type: ignore[attr-defined]


async def _apply_decision(
    session: AsyncSession,
    expense: Expense,
    entry: ApprovalLedgerEntry,
    transition: workflow.Transition,
) -> None:
    """Apply a decision transition: ledger writes first, then the expense state.

    Either conditional write losing its race discards the whole unit of work.
    """
    for mutation in transition.mutations:
        match mutation:
            case workflow.RecordDecision(action=action, comments=comments):
                if not await ledger.record_decision(session, entry, action, comments):
                    await session.rollback()
                    raise NotFoundOrNotAuthorizedError("Pending approval not found or not authorized")
            case workflow.RejectRemaining():
                aborted = await ledger.reject_all_pending(session, expense.id)
                if aborted:
                    logger.info("Expense %s: aborted %d pending approval levels", expense.id, aborted)
            case _:
                msg = f"Unexpected mutation for a decision: {mutation!r}"
                raise TypeError(msg)

    if not await _compare_and_swap_state(session, expense, transition.state):
        await session.rollback()
        raise StaleApprovalLevelError("The expense moved on while this decision was being recorded")


async def _audit_decision(
    session: AsyncSession,
    auth: AuthContext,
    expense: Expense,
    entry: ApprovalLedgerEntry,
    action: AuditAction,
    before_dict: dict[str, object],
) -> None:
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.APPROVAL,
        entity_id=entry.id,
        action=action,
        after_json=model_to_audit_dict(entry),
    )
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.EXPENSE,
        entity_id=expense.id,
        action=action,
        before_json=before_dict,
        after_json=model_to_audit_dict(expense),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def approve_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> ExpenseResponse:
    """Approve the caller's current level of an expense.

    1. Find the caller's pending row (404 if none: wrong approver, or the
       workflow already finished).
    2. Check the row is at the expense's current level.
    3. Mark the row approved.
    4. Advance to the next level, or mark the expense approved after the last one.
    5. Audit log and commit.
    """
    comments = payload.comments if payload else None
    entry, expense = await _find_pending_or_404(session, auth, expense_id)

    state = workflow.state_of(expense.status, expense.current_approval_level, expense.remarks)
    has_next = await ledger.has_pending_at_level(session, expense.id, entry.level + 1)
    transition = workflow.approve(state, entry.level, has_next=has_next, comments=comments)

    before_dict = model_to_audit_dict(expense)
    await _apply_decision(session, expense, entry, transition)
    await session.flush()
    await _audit_decision(session, auth, expense, entry, AuditAction.APPROVE, before_dict)

    await session.commit()
    await session.refresh(expense)

    if isinstance(transition.state, workflow.Approved):
        logger.info("Expense %s fully approved at level %d by %s", expense.id, entry.level, auth.user_id)
    else:
        logger.info(
            "Expense %s approved at level %d by %s; moved to level %d",
            expense.id,
            entry.level,
            auth.user_id,
            expense.current_approval_level,
        )
    return build_expense_response(expense)


async def reject_expense(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> ExpenseResponse:
    """Reject an expense at the caller's current level, aborting the remaining levels.

    Comments are mandatory and checked before anything else.
    """
    comments = workflow.require_reason(payload.comments if payload else None)
    entry, expense = await _find_pending_or_404(session, auth, expense_id)

    state = workflow.state_of(expense.status, expense.current_approval_level, expense.remarks)
    transition = workflow.reject(state, entry.level, comments)

    before_dict = model_to_audit_dict(expense)
    await _apply_decision(session, expense, entry, transition)
    await session.flush()
    await _audit_decision(session, auth, expense, entry, AuditAction.REJECT, before_dict)

    await session.commit()
    await session.refresh(expense)

    logger.info("Expense %s rejected at level %d by %s", expense.id, entry.level, auth.user_id)
    return build_expense_response(expense)


async def list_pending_approvals(
    session: AsyncSession,
    auth: AuthContext,
) -> PendingApprovalListResponse:
    """List the caller's pending decisions, oldest first."""
    rows = await ledger.list_pending_for_approver(session, auth.company_id, auth.user_id)
    items = [
        PendingApprovalResponse(
            entry=build_entry_response(entry),
            expense_id=expense.id,
            submitter_id=expense.user_id,
            title=expense.title,
            amount=expense.amount,
            currency=expense.currency,
            category=ExpenseCategory(expense.category),
            current_approval_level=expense.current_approval_level,
            is_current_level=entry.level == expense.current_approval_level,
        )
        for entry, expense in rows
    ]
    return PendingApprovalListResponse(items=items, total=len(items))


async def list_expense_approvals(
    session: AsyncSession,
    auth: AuthContext,
    expense_id: uuid.UUID,
) -> list[ApprovalEntryResponse]:
    """Return an expense's approval chain ordered by level."""
    expense = await get_expense_or_404(session, auth.company_id, expense_id)
    if auth.role == UserRole.EMPLOYEE and expense.user_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this expense")
    entries = await ledger.list_for_expense(session, expense.id)
    return [build_entry_response(e) for e in entries]
