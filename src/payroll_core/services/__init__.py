"""Payroll core services."""

from payroll_core.services.ledger_service import LedgerService, SqlCostLedger
from payroll_core.services.payroll_run_service import PayrollRunService, RunConfiguration
from payroll_core.services.state_machine import PayrollRunStateMachine, PayrollRunStatus
from payroll_core.services.summary_service import SummaryService

__all__ = [
    "LedgerService",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "RunConfiguration",
    "SqlCostLedger",
    "SummaryService",
]
