# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from expenseflow.api.deps import ApproverDep, validate_company_scope
from expenseflow.db import SessionDep
from expenseflow.schemas.approval import DecisionPayload, PendingApprovalListResponse
from expenseflow.schemas.expense import ExpenseResponse
from expenseflow.services import approval as approval_service

approvals_router = APIRouter(
    prefix="/companies/{company_id}/approvals",
    tags=["approvals"],
    dependencies=[Depends(validate_company_scope)],
)


@approvals_router.get("/pending", response_model=PendingApprovalListResponse)
async def list_pending_approvals(
    session: SessionDep,
    auth: ApproverDep,
) -> PendingApprovalListResponse:
    """List the caller's pending approval decisions."""
    return await approval_service.list_pending_approvals(session, auth)


@approvals_router.post("/{expense_id}/approve", response_model=ExpenseResponse)
async def approve_expense(
    expense_id: uuid.UUID,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> ExpenseResponse:
    """Approve the caller's current level of an expense."""
    return await approval_service.approve_expense(session, auth, expense_id, payload)


@approvals_router.post("/{expense_id}/reject", response_model=ExpenseResponse)
async def reject_expense(
    expense_id: uuid.UUID,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> ExpenseResponse:
    """Reject an expense. Comments are required."""
    return await approval_service.reject_expense(session, auth, expense_id, payload)
