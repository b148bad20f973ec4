# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from expenseflow.api.deps import AdminDep, AuthDep, validate_company_scope
from expenseflow.db import SessionDep
from expenseflow.schemas.approval_flow import (
    ApprovalFlowListResponse,
    ApprovalFlowResponse,
    CreateApprovalFlowRequest,
    UpdateApprovalFlowRequest,
)
from expenseflow.services import approval_flow as approval_flow_service

approval_flows_router = APIRouter(
    prefix="/companies/{company_id}/approval-flows",
    tags=["approval-flows"],
    dependencies=[Depends(validate_company_scope)],
)


@approval_flows_router.post("", response_model=ApprovalFlowResponse, status_code=status.HTTP_201_CREATED)
async def create_flow(
    payload: CreateApprovalFlowRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApprovalFlowResponse:
    """Create an approval flow (admin only)."""
    return await approval_flow_service.create_flow(session, auth, payload)


@approval_flows_router.get("", response_model=ApprovalFlowListResponse)
async def list_flows(
    session: SessionDep,
    auth: AuthDep,
    active_only: bool = Query(default=False),
) -> ApprovalFlowListResponse:
    """List the company's approval flows ordered by minimum amount."""
    return await approval_flow_service.list_flows(session, auth.company_id, active_only)


@approval_flows_router.get("/{flow_id}", response_model=ApprovalFlowResponse)
async def get_flow(
    flow_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ApprovalFlowResponse:
    """Get a single approval flow."""
    return await approval_flow_service.get_flow(session, auth.company_id, flow_id)


@approval_flows_router.patch("/{flow_id}", response_model=ApprovalFlowResponse)
async def update_flow(
    flow_id: uuid.UUID,
    payload: UpdateApprovalFlowRequest,
    session: SessionDep,
    auth: AdminDep,
) -> ApprovalFlowResponse:
    """Update an approval flow (admin only)."""
    return await approval_flow_service.update_flow(session, auth, flow_id, payload)


@approval_flows_router.delete("/{flow_id}", response_model=ApprovalFlowResponse)
async def deactivate_flow(
    flow_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> ApprovalFlowResponse:
    """Deactivate an approval flow (admin only). Flows are never hard-deleted."""
    return await approval_flow_service.deactivate_flow(session, auth, flow_id)
