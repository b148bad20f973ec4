from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from expenseflow.models import (
    ApprovalFlowConfig,
    ApprovalLedgerEntry,
    AuditLog,
    Expense,
    SQLModel,
)
from expenseflow.models.enums import ApprovalAction, ExpenseCategory, ExpenseStatus

EXPECTED_TABLES = {
    "approval_flow",
    "approval_ledger_entry",
    "audit_log",
    "expense",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_approval_flow_defaults() -> None:
    flow = ApprovalFlowConfig(company_id=uuid.uuid4(), name="Small", created_by=uuid.uuid4())
    assert flow.min_amount == Decimal(0)
    assert flow.max_amount is None
    assert flow.approval_levels == 1
    assert flow.is_active is True
    assert flow.id is not None


def test_expense_defaults() -> None:
    expense = Expense(
        company_id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        title="Taxi",
        amount=Decimal("23.40"),
        currency="USD",
        expense_date=date(2026, 1, 5),
    )
    assert expense.status == ExpenseStatus.PENDING
    assert expense.category == ExpenseCategory.OTHER
    assert expense.current_approval_level == 0
    assert expense.approval_flow_id is None
    assert expense.revision == 0


def test_ledger_entry_defaults() -> None:
    entry = ApprovalLedgerEntry(expense_id=uuid.uuid4(), approver_id=uuid.uuid4(), level=1)
    assert entry.action == ApprovalAction.PENDING
    assert entry.comments is None
    assert entry.action_at is None


def test_ledger_unique_per_level() -> None:
    table = SQLModel.metadata.tables["approval_ledger_entry"]
    uniques = {c.name for c in table.constraints if c.name and c.name.startswith("uq_")}
    assert "uq_ledger_expense_level" in uniques


def test_expense_flow_reference_survives_flow_removal() -> None:
    column = SQLModel.metadata.tables["expense"].c.approval_flow_id
    (fk,) = column.foreign_keys
    assert fk.ondelete == "SET NULL"


def test_audit_log_instantiation() -> None:
    log = AuditLog(
        company_id=uuid.uuid4(),
        actor_id=uuid.uuid4(),
        entity_type="EXPENSE",
        entity_id=uuid.uuid4(),
        action="SUBMIT",
        after_json={"status": "processing"},
    )
    assert log.before_json is None
    assert log.created_at is not None
