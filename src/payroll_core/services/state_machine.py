"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import Any

from payroll_core.errors import InvalidTransitionError


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    FINALIZED = "finalized"
    PAID = "paid"
    ARCHIVED = "archived"


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - draft → finalized
    - finalized → paid
    - finalized → draft (revert)
    - paid → finalized (revert)
    - finalized → archived
    - paid → archived
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.FINALIZED],
        PayrollRunStatus.FINALIZED: [
            PayrollRunStatus.PAID,
            PayrollRunStatus.DRAFT,
            PayrollRunStatus.ARCHIVED,
        ],
        PayrollRunStatus.PAID: [PayrollRunStatus.FINALIZED, PayrollRunStatus.ARCHIVED],
        PayrollRunStatus.ARCHIVED: [],  # Terminal state
    }

    # Statuses where dates, employees and configuration can change
    EDITABLE = {PayrollRunStatus.DRAFT}

    # Statuses that hold cost ledger records
    COSTS_RECORDED = {PayrollRunStatus.FINALIZED, PayrollRunStatus.PAID}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, payroll_run_id: Any = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(
                from_status, to_status, payroll_run_id=payroll_run_id
            )

    @classmethod
    def can_edit(cls, status: str) -> bool:
        return status in cls.EDITABLE

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status != PayrollRunStatus.ARCHIVED

    @classmethod
    def has_cost_records(cls, status: str) -> bool:
        return status in cls.COSTS_RECORDED

