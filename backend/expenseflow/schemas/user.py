# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from expenseflow.models.enums import UserRole


class UpsertUserRequest(BaseModel):
    """Request body for upserting a user in the stub directory."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.EMPLOYEE
    manager_id: uuid.UUID | None = None
    is_active: bool = True


class UserResponse(BaseModel):
    """Response schema for a directory user."""

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole
    manager_id: uuid.UUID | None
    is_active: bool


class UserListResponse(BaseModel):
    """List of directory users."""

    items: list[UserResponse]
    total: int
