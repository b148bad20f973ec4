# ruff: noqa: TC003
"""Pick the approval flow that governs an expense amount.

A flow covers ``amount`` when ``min_amount <= amount`` and either it has no
``max_amount`` or ``max_amount >= amount``. Active flows of one company never
overlap, but if they ever did the flow with the highest ``min_amount`` wins.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlmodel import col

from expenseflow.models.approval_flow import ApprovalFlowConfig

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def select_flow(
    session: AsyncSession,
    company_id: uuid.UUID,
    amount: Decimal,
) -> ApprovalFlowConfig | None:
    """Return the active flow of ``company_id`` covering ``amount``, or None."""
    result = await session.execute(
        select(ApprovalFlowConfig)
        .where(
            col(ApprovalFlowConfig.company_id) == company_id,
            col(ApprovalFlowConfig.is_active).is_(True),
            col(ApprovalFlowConfig.min_amount) <= amount,
            or_(
                col(ApprovalFlowConfig.max_amount).is_(None),
                col(ApprovalFlowConfig.max_amount) >= amount,
            ),
        )
        .order_by(col(ApprovalFlowConfig.min_amount).desc())
        .limit(1)
    )
    return result.scalars().first()
