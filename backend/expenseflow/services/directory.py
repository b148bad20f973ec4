# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from expenseflow.models.enums import UserRole


class UserInfo(BaseModel):
    """User metadata from the Directory Service."""

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole = UserRole.EMPLOYEE
    manager_id: uuid.UUID | None = None
    is_active: bool = True


@runtime_checkable
class Directory(Protocol):
    """Interface for the user hierarchy lookups the approval workflow consumes."""

    async def get_user(self, company_id: uuid.UUID, user_id: uuid.UUID) -> UserInfo | None:
        """Fetch a user. Returns None if not found."""
        ...

    async def get_manager(self, company_id: uuid.UUID, user_id: uuid.UUID) -> uuid.UUID | None:
        """Return the user's direct manager, or None at the top of the hierarchy."""
        ...

    async def find_active_admin(self, company_id: uuid.UUID) -> uuid.UUID | None:
        """Return the company's active admin, or None if there is none."""
        ...

    async def list_direct_reports(self, company_id: uuid.UUID, manager_id: uuid.UUID) -> list[uuid.UUID]:
        """List users whose direct manager is ``manager_id``."""
        ...

    async def list_users(self, company_id: uuid.UUID) -> list[UserInfo]:
        """List all users for a company."""
        ...

    async def get_company_currency(self, company_id: uuid.UUID) -> str | None:
        """Return the company's base currency code, or None if unknown."""
        ...


class InMemoryDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._users: dict[tuple[uuid.UUID, uuid.UUID], UserInfo] = {}
        self._currencies: dict[uuid.UUID, str] = {}

    def seed(self, user: UserInfo) -> None:
        """Seed a user for testing."""
        self._users[(user.company_id, user.id)] = user

    def seed_company(self, company_id: uuid.UUID, currency: str) -> None:
        """Seed a company's base currency."""
        self._currencies[company_id] = currency

    async def get_user(self, company_id: uuid.UUID, user_id: uuid.UUID) -> UserInfo | None:
        return self._users.get((company_id, user_id))

    async def get_manager(self, company_id: uuid.UUID, user_id: uuid.UUID) -> uuid.UUID | None:
        user = self._users.get((company_id, user_id))
        return user.manager_id if user is not None else None

    async def find_active_admin(self, company_id: uuid.UUID) -> uuid.UUID | None:
        # Insertion order keeps the choice stable when a company has several admins.
        for user in self._users.values():
            if user.company_id == company_id and user.role == UserRole.ADMIN and user.is_active:
                return user.id
        return None

    async def list_direct_reports(self, company_id: uuid.UUID, manager_id: uuid.UUID) -> list[uuid.UUID]:
        return [u.id for u in self._users.values() if u.company_id == company_id and u.manager_id == manager_id]

    async def list_users(self, company_id: uuid.UUID) -> list[UserInfo]:
        return [u for u in self._users.values() if u.company_id == company_id]

    async def get_company_currency(self, company_id: uuid.UUID) -> str | None:
        return self._currencies.get(company_id)


_directory: Directory = InMemoryDirectory()


def get_directory() -> Directory:
    """FastAPI dependency for the Directory Service."""
    return _directory


def set_directory(directory: Directory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _directory
    _directory = directory
