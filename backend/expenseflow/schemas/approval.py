# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from expenseflow.models.enums import ApprovalAction, ExpenseCategory


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    comments: str | None = Field(default=None, max_length=2000)


class ApprovalEntryResponse(BaseModel):
    """One level of an expense's approval chain."""

    id: uuid.UUID
    expense_id: uuid.UUID
    approver_id: uuid.UUID
    level: int
    action: ApprovalAction
    comments: str | None
    action_at: datetime | None
    created_at: datetime


class PendingApprovalResponse(BaseModel):
    """A pending decision in an approver's inbox, with the expense it gates."""

    entry: ApprovalEntryResponse
    expense_id: uuid.UUID
    submitter_id: uuid.UUID
    title: str
    amount: Decimal
    currency: str
    category: ExpenseCategory
    current_approval_level: int
    is_current_level: bool


class PendingApprovalListResponse(BaseModel):
    items: list[PendingApprovalResponse]
    total: int
