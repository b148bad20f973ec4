# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from expenseflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from expenseflow.models.enums import ExpenseCategory, ExpenseStatus


class Expense(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's spend request with approval workflow state."""

    __tablename__ = "expense"
    __table_args__ = (
        sa.Index("ix_expense_company_status", "company_id", "status"),
        sa.CheckConstraint("amount > 0", name="ck_expense_amount_positive"),
        sa.CheckConstraint("current_approval_level >= 0", name="ck_expense_level_nonnegative"),
    )

    company_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID = Field(index=True)
    title: str = Field(max_length=255)
    description: str | None = None
    amount: Decimal = Field(sa_type=sa.Numeric(12, 2))
    currency: str = Field(max_length=3)
    category: str = Field(default=ExpenseCategory.OTHER, max_length=50)
    expense_date: date
    receipt: str | None = Field(default=None, max_length=500)
    status: str = Field(
        default=ExpenseStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    # 0 means the expense has not been routed into a workflow.
    current_approval_level: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    remarks: str | None = None
    approval_flow_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("approval_flow.id", ondelete="SET NULL"), nullable=True),
    )
    # Bumped on every workflow write; compared before each write.
    revision: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
