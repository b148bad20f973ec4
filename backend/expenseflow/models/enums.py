from __future__ import annotations

import enum


class ExpenseStatus(enum.StrEnum):
    """Persisted status of an expense."""

    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExpenseCategory(enum.StrEnum):
    """Spend category of an expense."""

    TRAVEL = "travel"
    FOOD = "food"
    ACCOMMODATION = "accommodation"
    TRANSPORTATION = "transportation"
    SUPPLIES = "supplies"
    OTHER = "other"


class ApprovalAction(enum.StrEnum):
    """Decision recorded on an approval ledger row."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(enum.StrEnum):
    """Role of a directory user."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    EXPENSE = "EXPENSE"
    APPROVAL_FLOW = "APPROVAL_FLOW"
    APPROVAL = "APPROVAL"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DEACTIVATE = "DEACTIVATE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
