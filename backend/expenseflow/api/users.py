# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from expenseflow.api.deps import AdminDep, AuthDep, DirectoryDep, validate_company_scope
from expenseflow.exceptions import ForbiddenError, NotFoundError
from expenseflow.schemas.user import UpsertUserRequest, UserListResponse, UserResponse
from expenseflow.services.directory import InMemoryDirectory, UserInfo

users_router = APIRouter(
    prefix="/companies/{company_id}/users",
    tags=["users"],
    dependencies=[Depends(validate_company_scope)],
)


def _build_user_response(user: UserInfo) -> UserResponse:
    return UserResponse(
        id=user.id,
        company_id=user.company_id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
        manager_id=user.manager_id,
        is_active=user.is_active,
    )


@users_router.put("/{user_id}", response_model=UserResponse)
async def upsert_user(
    company_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: UpsertUserRequest,
    auth: AdminDep,
    directory: DirectoryDep,
) -> UserResponse:
    """Create or update a user in the stub directory (admin only)."""
    if not isinstance(directory, InMemoryDirectory):
        raise ForbiddenError("The configured directory is read-only")
    user = UserInfo(id=user_id, company_id=company_id, **payload.model_dump())
    directory.seed(user)
    return _build_user_response(user)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    company_id: uuid.UUID,
    user_id: uuid.UUID,
    auth: AuthDep,
    directory: DirectoryDep,
) -> UserResponse:
    """Get a user from the directory."""
    user = await directory.get_user(company_id, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _build_user_response(user)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    company_id: uuid.UUID,
    auth: AuthDep,
    directory: DirectoryDep,
) -> UserListResponse:
    """List all users of a company from the directory."""
    users = await directory.list_users(company_id)
    items = [_build_user_response(u) for u in users]
    return UserListResponse(items=items, total=len(items))
