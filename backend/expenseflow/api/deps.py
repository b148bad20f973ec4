# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path

from expenseflow.exceptions import ForbiddenError
from expenseflow.models.enums import UserRole
from expenseflow.schemas.auth import AuthContext
from expenseflow.services.directory import Directory, get_directory


async def get_auth_context(
    x_company_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: UserRole = Header(default=UserRole.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(company_id=x_company_id, user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def require_approver(
    auth: AuthDep,
) -> AuthContext:
    """Require a role that can act on approvals (manager or admin)."""
    if auth.role not in (UserRole.MANAGER, UserRole.ADMIN):
        raise ForbiddenError("Manager or admin access required")
    return auth


ApproverDep = Annotated[AuthContext, Depends(require_approver)]

DirectoryDep = Annotated[Directory, Depends(get_directory)]


async def validate_company_scope(
    company_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path company_id matches the auth header company_id."""
    if company_id != auth.company_id:
        raise ForbiddenError("Company ID mismatch")
    return auth
