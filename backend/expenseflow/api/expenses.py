# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from expenseflow.api.deps import AuthDep, DirectoryDep, validate_company_scope
from expenseflow.db import SessionDep
from expenseflow.models.enums import ExpenseCategory, ExpenseStatus
from expenseflow.schemas.approval import ApprovalEntryResponse
from expenseflow.schemas.expense import (
    CreateExpenseRequest,
    ExpenseDetailResponse,
    ExpenseListResponse,
    ExpenseResponse,
    UpdateExpenseRequest,
)
from expenseflow.services import approval as approval_service
from expenseflow.services import expense as expense_service

expenses_router = APIRouter(
    prefix="/companies/{company_id}/expenses",
    tags=["expenses"],
    dependencies=[Depends(validate_company_scope)],
)


@expenses_router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: CreateExpenseRequest,
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
) -> ExpenseResponse:
    """Submit a new expense and route it into the matching approval flow."""
    return await expense_service.create_expense(session, auth, payload, directory)


@expenses_router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
    status_filter: ExpenseStatus | None = Query(default=None, alias="status"),
    category: ExpenseCategory | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ExpenseListResponse:
    """List expenses visible to the caller."""
    return await expense_service.list_expenses(
        session, auth, directory, status_filter, category, start_date, end_date, offset, limit
    )


@expenses_router.get("/{expense_id}", response_model=ExpenseDetailResponse)
async def get_expense(
    expense_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ExpenseDetailResponse:
    """Get a single expense with its approval chain."""
    return await expense_service.get_expense(session, auth, expense_id)


@expenses_router.get("/{expense_id}/approvals", response_model=list[ApprovalEntryResponse])
async def list_expense_approvals(
    expense_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> list[ApprovalEntryResponse]:
    """Get an expense's approval chain ordered by level."""
    return await approval_service.list_expense_approvals(session, auth, expense_id)


@expenses_router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: uuid.UUID,
    payload: UpdateExpenseRequest,
    session: SessionDep,
    auth: AuthDep,
) -> ExpenseResponse:
    """Edit a pending expense (owner only)."""
    return await expense_service.update_expense(session, auth, expense_id, payload)


@expenses_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Delete a pending expense (owner only)."""
    await expense_service.delete_expense(session, auth, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
