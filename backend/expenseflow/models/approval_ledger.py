# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from expenseflow.models.base import TimestampMixin, UUIDBase
from expenseflow.models.enums import ApprovalAction


class ApprovalLedgerEntry(UUIDBase, TimestampMixin, table=True):
    """One decision slot of an expense's approval chain: a single approver at a single level."""

    __tablename__ = "approval_ledger_entry"
    __table_args__ = (
        sa.UniqueConstraint("expense_id", "level", name="uq_ledger_expense_level"),
        sa.Index("ix_ledger_approver_action", "approver_id", "action"),
    )

    expense_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("expense.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    approver_id: uuid.UUID
    level: int
    action: str = Field(default=ApprovalAction.PENDING, max_length=20, sa_column_kwargs={"server_default": "pending"})
    comments: str | None = None
    action_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
