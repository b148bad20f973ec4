# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from expenseflow.exceptions import InvalidInputError, InvalidLevelsError, NotFoundError, OverlappingRangeError
from expenseflow.models.approval_flow import ApprovalFlowConfig
from expenseflow.models.base import now_utc
from expenseflow.models.enums import AuditAction, AuditEntityType
from expenseflow.schemas.approval_flow import (
    MAX_APPROVAL_LEVELS,
    MIN_APPROVAL_LEVELS,
    ApprovalFlowListResponse,
    ApprovalFlowResponse,
)
from expenseflow.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expenseflow.schemas.approval_flow import CreateApprovalFlowRequest, UpdateApprovalFlowRequest
    from expenseflow.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_flow_response(flow: ApprovalFlowConfig) -> ApprovalFlowResponse:
    return ApprovalFlowResponse(
        id=flow.id,
        company_id=flow.company_id,
        name=flow.name,
        min_amount=flow.min_amount,
        max_amount=flow.max_amount,
        approval_levels=flow.approval_levels,
        is_active=flow.is_active,
        created_by=flow.created_by,
        created_at=flow.created_at,
        updated_at=flow.updated_at,
    )


def _validate_flow(min_amount: Decimal, max_amount: Decimal | None, approval_levels: int) -> None:
    if not MIN_APPROVAL_LEVELS <= approval_levels <= MAX_APPROVAL_LEVELS:
        raise InvalidLevelsError(
            f"Approval levels must be between {MIN_APPROVAL_LEVELS} and {MAX_APPROVAL_LEVELS}"
        )
    if min_amount < 0:
        raise InvalidInputError("min_amount must not be negative")
    if max_amount is not None and max_amount < min_amount:
        raise InvalidInputError("max_amount must not be less than min_amount")


def ranges_overlap(
    min_a: Decimal,
    max_a: Decimal | None,
    min_b: Decimal,
    max_b: Decimal | None,
) -> bool:
    """Return True if two inclusive amount ranges intersect. A None max is unbounded."""
    a_reaches_b = max_a is None or max_a >= min_b
    b_reaches_a = max_b is None or max_b >= min_a
    return a_reaches_b and b_reaches_a


async def _check_overlap(
    session: AsyncSession,
    company_id: uuid.UUID,
    min_amount: Decimal,
    max_amount: Decimal | None,
    exclude_flow_id: uuid.UUID | None = None,
) -> None:
    """Raise OverlappingRangeError if an active flow intersects ``[min_amount, max_amount]``."""
    query = select(ApprovalFlowConfig).where(
        col(ApprovalFlowConfig.company_id) == company_id,
        col(ApprovalFlowConfig.is_active).is_(True),
    )
    if exclude_flow_id is not None:
        query = query.where(col(ApprovalFlowConfig.id) != exclude_flow_id)

    result = await session.execute(query)
    conflict = next(
        (f for f in result.scalars() if ranges_overlap(f.min_amount, f.max_amount, min_amount, max_amount)),
        None,
    )
    if conflict is not None:
        raise OverlappingRangeError(
            f"Approval flow with overlapping amount range already exists: {conflict.name}"
        )


async def _get_flow_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    flow_id: uuid.UUID,
) -> ApprovalFlowConfig:
    result = await session.execute(
        select(ApprovalFlowConfig).where(
            col(ApprovalFlowConfig.id) == flow_id,
            col(ApprovalFlowConfig.company_id) == company_id,
        )
    )
    flow = result.scalar_one_or_none()
    if flow is None:
        raise NotFoundError("Approval flow not found")
    return flow


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_flow(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateApprovalFlowRequest,
) -> ApprovalFlowResponse:
    """Create an active approval flow after checking levels and range disjointness."""
    _validate_flow(payload.min_amount, payload.max_amount, payload.approval_levels)
    await _check_overlap(session, auth.company_id, payload.min_amount, payload.max_amount)

    flow = ApprovalFlowConfig(
        company_id=auth.company_id,
        name=payload.name,
        min_amount=payload.min_amount,
        max_amount=payload.max_amount,
        approval_levels=payload.approval_levels,
        is_active=True,
        created_by=auth.user_id,
    )
    session.add(flow)
    await session.flush()

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.APPROVAL_FLOW,
        entity_id=flow.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(flow),
    )
    await session.commit()
    await session.refresh(flow)

    logger.info(
        "Approval flow %s created for company %s: [%s, %s] with %d levels",
        flow.id,
        flow.company_id,
        flow.min_amount,
        flow.max_amount if flow.max_amount is not None else "unbounded",
        flow.approval_levels,
    )
    return _build_flow_response(flow)


async def get_flow(
    session: AsyncSession,
    company_id: uuid.UUID,
    flow_id: uuid.UUID,
) -> ApprovalFlowResponse:
    flow = await _get_flow_or_404(session, company_id, flow_id)
    return _build_flow_response(flow)


async def list_flows(
    session: AsyncSession,
    company_id: uuid.UUID,
    active_only: bool = False,
) -> ApprovalFlowListResponse:
    """List a company's approval flows ordered by ``min_amount``."""
    filters = [col(ApprovalFlowConfig.company_id) == company_id]
    if active_only:
        filters.append(col(ApprovalFlowConfig.is_active).is_(True))

    count_result = await session.execute(select(func.count()).select_from(ApprovalFlowConfig).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(ApprovalFlowConfig)
        .where(*filters)
        .order_by(col(ApprovalFlowConfig.min_amount), col(ApprovalFlowConfig.created_at))
    )
    flows = list(result.scalars().all())
    return ApprovalFlowListResponse(items=[_build_flow_response(f) for f in flows], total=total)


async def update_flow(
    session: AsyncSession,
    auth: AuthContext,
    flow_id: uuid.UUID,
    payload: UpdateApprovalFlowRequest,
) -> ApprovalFlowResponse:
    """Partially update a flow.

    The merged result is validated as a whole and, if it ends up active,
    checked for overlap against every other active flow. In-flight expenses
    keep the chain they were routed with.
    """
    flow = await _get_flow_or_404(session, auth.company_id, flow_id)
    before_dict = model_to_audit_dict(flow)

    fields_set = payload.model_fields_set
    name = payload.name if payload.name is not None else flow.name
    min_amount = payload.min_amount if payload.min_amount is not None else flow.min_amount
    # An explicit null clears the upper bound; an omitted field keeps it.
    max_amount = payload.max_amount if "max_amount" in fields_set else flow.max_amount
    approval_levels = payload.approval_levels if payload.approval_levels is not None else flow.approval_levels
    is_active = payload.is_active if payload.is_active is not None else flow.is_active

    _validate_flow(min_amount, max_amount, approval_levels)
    if is_active:
        await _check_overlap(session, auth.company_id, min_amount, max_amount, exclude_flow_id=flow.id)

    flow.name = name
    flow.min_amount = min_amount
    flow.max_amount = max_amount
    flow.approval_levels = approval_levels
    flow.is_active = is_active
    flow.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.APPROVAL_FLOW,
        entity_id=flow.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(flow),
    )
    await session.commit()
    await session.refresh(flow)
    return _build_flow_response(flow)


async def deactivate_flow(
    session: AsyncSession,
    auth: AuthContext,
    flow_id: uuid.UUID,
) -> ApprovalFlowResponse:
    """Soft-delete a flow. Flows are never removed so routed expenses keep their reference."""
    flow = await _get_flow_or_404(session, auth.company_id, flow_id)
    if not flow.is_active:
        return _build_flow_response(flow)

    before_dict = model_to_audit_dict(flow)
    flow.is_active = False
    flow.updated_at = now_utc()
    await session.flush()

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.APPROVAL_FLOW,
        entity_id=flow.id,
        action=AuditAction.DEACTIVATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(flow),
    )
    await session.commit()
    await session.refresh(flow)

    logger.info("Approval flow %s deactivated by %s", flow.id, auth.user_id)
    return _build_flow_response(flow)
