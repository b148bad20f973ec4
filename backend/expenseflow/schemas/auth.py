# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from expenseflow.models.enums import UserRole


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: UserRole = UserRole.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
