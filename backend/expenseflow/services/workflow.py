# ruff: noqa: TC003
"""Approval workflow state machine.

An expense's workflow is one of four states::

    NotStarted ──start──▶ InProgress(1) ──approve──▶ InProgress(2) ─ … ─▶ Approved
                               │                          │
                               └────────reject────────────┴──────────────▶ Rejected

Transition functions are pure: they take the current state and the facts of
the decision, and return the next state together with the ledger mutations
the caller has to apply. Nothing here touches the database.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from expenseflow.exceptions import MissingCommentsError, StaleApprovalLevelError
from expenseflow.models.enums import ApprovalAction, ExpenseStatus

# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotStarted:
    """No flow matched; the expense sits in ``pending`` at level 0."""


@dataclass(frozen=True)
class InProgress:
    """Waiting on the approver of ``level``."""

    level: int


@dataclass(frozen=True)
class Approved:
    """Every level approved. ``level`` is the final level."""

    level: int


@dataclass(frozen=True)
class Rejected:
    """Rejected at ``level`` with ``reason``."""

    level: int
    reason: str


WorkflowState = NotStarted | InProgress | Approved | Rejected


# ---------------------------------------------------------------------------
# Ledger mutations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InitializeLedger:
    """Create one pending row per approver, levels numbered from 1."""

    chain: tuple[uuid.UUID, ...]


@dataclass(frozen=True)
class RecordDecision:
    """Move the row at ``level`` from pending to ``action``."""

    level: int
    action: ApprovalAction
    comments: str | None


@dataclass(frozen=True)
class RejectRemaining:
    """Force every row still pending to rejected."""


LedgerMutation = InitializeLedger | RecordDecision | RejectRemaining


@dataclass(frozen=True)
class Transition:
    """Result of a transition: the next state and the ledger writes that realise it."""

    state: WorkflowState
    mutations: tuple[LedgerMutation, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Mapping to and from persisted columns
# ---------------------------------------------------------------------------


def state_of(status: str, level: int, remarks: str | None = None) -> WorkflowState:
    """Rebuild the workflow state from an expense's persisted columns."""
    match ExpenseStatus(status):
        case ExpenseStatus.PENDING:
            return NotStarted()
        case ExpenseStatus.PROCESSING:
            return InProgress(level=level)
        case ExpenseStatus.APPROVED:
            return Approved(level=level)
        case ExpenseStatus.REJECTED:
            return Rejected(level=level, reason=remarks or "")


def columns_for(state: WorkflowState) -> dict[str, object]:
    """Return the expense column values that represent ``state``."""
    match state:
        case NotStarted():
            return {"status": ExpenseStatus.PENDING.value, "current_approval_level": 0}
        case InProgress(level=level):
            return {"status": ExpenseStatus.PROCESSING.value, "current_approval_level": level}
        case Approved(level=level):
            return {"status": ExpenseStatus.APPROVED.value, "current_approval_level": level}
        case Rejected(level=level, reason=reason):
            return {"status": ExpenseStatus.REJECTED.value, "current_approval_level": level, "remarks": reason}
    msg = f"Unknown workflow state: {state!r}"
    raise TypeError(msg)


def is_terminal(state: WorkflowState) -> bool:
    return isinstance(state, (Approved, Rejected))


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def start(chain: Sequence[uuid.UUID] | None) -> Transition:
    """Route a freshly submitted expense.

    ``None`` means no flow matched and the expense stays unrouted.
    """
    if chain is None:
        return Transition(state=NotStarted())
    if not chain:
        msg = "An approval chain needs at least one approver"
        raise ValueError(msg)
    return Transition(state=InProgress(level=1), mutations=(InitializeLedger(chain=tuple(chain)),))


def _require_current_level(state: WorkflowState, level: int) -> InProgress:
    if not isinstance(state, InProgress) or state.level != level:
        raise StaleApprovalLevelError("This is not the current approval level")
    return state


def approve(state: WorkflowState, level: int, *, has_next: bool, comments: str | None = None) -> Transition:
    """Approve ``level``. Advances to the next level, or finishes the chain when ``has_next`` is False."""
    current = _require_current_level(state, level)
    decision = RecordDecision(level=level, action=ApprovalAction.APPROVED, comments=comments)
    if has_next:
        return Transition(state=InProgress(level=current.level + 1), mutations=(decision,))
    return Transition(state=Approved(level=current.level), mutations=(decision,))


def require_reason(comments: str | None) -> str:
    """Return the rejection reason as given. Raises MissingCommentsError if it is blank."""
    if comments is None or not comments.strip():
        raise MissingCommentsError("Comments are required when rejecting an expense")
    return comments


def reject(state: WorkflowState, level: int, comments: str | None) -> Transition:
    """Reject at ``level``, aborting every level still pending."""
    reason = require_reason(comments)
    current = _require_current_level(state, level)
    return Transition(
        state=Rejected(level=current.level, reason=reason),
        mutations=(
            RecordDecision(level=level, action=ApprovalAction.REJECTED, comments=reason),
            RejectRemaining(),
        ),
    )
