# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from expenseflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class ApprovalFlowConfig(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Company rule mapping an inclusive amount range to a number of approval levels."""

    __tablename__ = "approval_flow"
    __table_args__ = (
        sa.Index("ix_approval_flow_company_active_min", "company_id", "is_active", "min_amount"),
        sa.CheckConstraint("min_amount >= 0", name="ck_approval_flow_min_nonnegative"),
        sa.CheckConstraint("approval_levels BETWEEN 1 AND 5", name="ck_approval_flow_levels_range"),
    )

    company_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    min_amount: Decimal = Field(default=Decimal(0), sa_type=sa.Numeric(12, 2))
    # None means the range has no upper bound.
    max_amount: Decimal | None = Field(default=None, sa_type=sa.Numeric(12, 2))
    approval_levels: int = Field(default=1)
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    created_by: uuid.UUID
