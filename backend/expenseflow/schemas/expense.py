# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from expenseflow.models.enums import ExpenseCategory, ExpenseStatus
from expenseflow.schemas.approval import ApprovalEntryResponse

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateExpenseRequest(BaseModel):
    """Request body for submitting a new expense."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: ExpenseCategory = ExpenseCategory.OTHER
    expense_date: date
    receipt: str | None = Field(default=None, max_length=500)


class UpdateExpenseRequest(BaseModel):
    """Partial update of a pending expense."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    category: ExpenseCategory | None = None
    expense_date: date | None = None
    receipt: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ExpenseResponse(BaseModel):
    """Response schema for a single expense."""

    id: uuid.UUID
    company_id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None
    amount: Decimal
    currency: str
    category: ExpenseCategory
    expense_date: date
    receipt: str | None
    status: ExpenseStatus
    current_approval_level: int
    remarks: str | None
    approval_flow_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class ExpenseDetailResponse(ExpenseResponse):
    """An expense together with its approval chain, ordered by level."""

    approvals: list[ApprovalEntryResponse]


class ExpenseListResponse(BaseModel):
    """Paginated list of expenses."""

    items: list[ExpenseResponse]
    total: int
