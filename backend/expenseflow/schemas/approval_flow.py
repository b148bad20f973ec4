# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

# Level bounds are enforced by the service so they surface as InvalidLevelsError
# rather than a schema validation error.
MIN_APPROVAL_LEVELS = 1
MAX_APPROVAL_LEVELS = 5

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateApprovalFlowRequest(BaseModel):
    """Request body for creating an approval flow."""

    name: str = Field(min_length=1, max_length=255)
    min_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    max_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    approval_levels: int


class UpdateApprovalFlowRequest(BaseModel):
    """Partial update of an approval flow. Omitted fields keep their value."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    min_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    max_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    approval_levels: int | None = None
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApprovalFlowResponse(BaseModel):
    """Response schema for an approval flow."""

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    min_amount: Decimal
    max_amount: Decimal | None
    approval_levels: int
    is_active: bool
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime


class ApprovalFlowListResponse(BaseModel):
    """List of approval flows."""

    items: list[ApprovalFlowResponse]
    total: int
