from sqlmodel import SQLModel

from expenseflow.models.approval_flow import ApprovalFlowConfig
from expenseflow.models.approval_ledger import ApprovalLedgerEntry
from expenseflow.models.audit import AuditLog
from expenseflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from expenseflow.models.enums import (
    ApprovalAction,
    AuditAction,
    AuditEntityType,
    ExpenseCategory,
    ExpenseStatus,
    UserRole,
)
from expenseflow.models.expense import Expense

__all__ = [
    "ApprovalAction",
    "ApprovalFlowConfig",
    "ApprovalLedgerEntry",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Expense",
    "ExpenseCategory",
    "ExpenseStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "UserRole",
]
