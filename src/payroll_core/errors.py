"""Error taxonomy for payroll computation and run lifecycle."""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all payroll core errors."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, **context: Any):
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable error body for API responses."""
        return {
            "detail": str(self),
            "code": self.code,
            "context": {k: str(v) for k, v in self.context.items()},
        }


class ValidationError(PayrollError):
    """Raised when input has the wrong shape (empty employee set, inverted range)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, **context: Any):
        self.field = field
        super().__init__(message, field=field, **context)


class NotFoundError(PayrollError):
    """Raised for an unknown employee or payroll run ID."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)


class InvalidStateError(PayrollError):
    """Raised when a run is mutated outside the draft status."""

    code = "INVALID_STATE"

    def __init__(self, payroll_run_id: Any, current_status: str, action: str):
        self.payroll_run_id = payroll_run_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} payroll run {payroll_run_id} in status '{current_status}'",
            payroll_run_id=payroll_run_id,
            current_status=current_status,
        )


class InvalidTransitionError(PayrollError):
    """Raised when an invalid status transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        from_status: str,
        to_status: str,
        reason: str | None = None,
        payroll_run_id: Any = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        self.payroll_run_id = payroll_run_id
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            payroll_run_id=payroll_run_id,
            current_status=from_status,
            target_status=to_status,
        )


class ComputationError(PayrollError):
    """Raised when data needed to compute a payslip for an employee is missing."""

    code = "COMPUTATION_ERROR"

    def __init__(self, employee_id: Any, message: str, field: str | None = None):
        self.employee_id = employee_id
        self.field = field
        super().__init__(
            f"Cannot compute payslip for employee {employee_id}: {message}",
            employee_id=employee_id,
            field=field,
        )
