"""Tests for payroll run state machine."""

import pytest

from payroll_core.errors import InvalidTransitionError
from payroll_core.services.state_machine import PayrollRunStateMachine, PayrollRunStatus


class TestPayrollRunStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        assert PayrollRunStateMachine.can_transition("draft", "finalized") is True
        assert PayrollRunStateMachine.can_transition("finalized", "paid") is True
        assert PayrollRunStateMachine.can_transition("paid", "finalized") is True
        assert PayrollRunStateMachine.can_transition("finalized", "draft") is True
        assert PayrollRunStateMachine.can_transition("finalized", "archived") is True
        assert PayrollRunStateMachine.can_transition("paid", "archived") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip finalize
        assert PayrollRunStateMachine.can_transition("draft", "paid") is False
        assert PayrollRunStateMachine.can_transition("draft", "archived") is False
        assert PayrollRunStateMachine.can_transition("paid", "draft") is False

        # Archived is terminal
        for status in PayrollRunStatus:
            assert PayrollRunStateMachine.can_transition("archived", status) is False

    def test_self_transitions_are_invalid(self):
        for status in PayrollRunStatus:
            assert PayrollRunStateMachine.can_transition(status, status) is False

    def test_unknown_status(self):
        assert PayrollRunStateMachine.can_transition("pending", "draft") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("draft", "paid")

        assert exc_info.value.from_status == "draft"
        assert exc_info.value.to_status == "paid"
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_can_edit_only_draft(self):
        assert PayrollRunStateMachine.can_edit("draft") is True
        assert PayrollRunStateMachine.can_edit("finalized") is False
        assert PayrollRunStateMachine.can_edit("paid") is False
        assert PayrollRunStateMachine.can_edit("archived") is False

    def test_can_delete_unless_archived(self):
        assert PayrollRunStateMachine.can_delete("draft") is True
        assert PayrollRunStateMachine.can_delete("finalized") is True
        assert PayrollRunStateMachine.can_delete("paid") is True
        assert PayrollRunStateMachine.can_delete("archived") is False

    def test_cost_records_held_while_finalized_or_paid(self):
        assert PayrollRunStateMachine.has_cost_records("finalized") is True
        assert PayrollRunStateMachine.has_cost_records("paid") is True
        assert PayrollRunStateMachine.has_cost_records("draft") is False
        assert PayrollRunStateMachine.has_cost_records("archived") is False
