"""Payslip calculation pipeline."""

from payroll_core.calculators.attendance import AttendanceAggregator
from payroll_core.calculators.compositor import CompositionInput, PayslipCompositor
from payroll_core.calculators.deductions import DeductionEngine, DeductionResult
from payroll_core.calculators.incentives import IncentiveEngine, IncentiveResult
from payroll_core.calculators.rate_resolver import RateResolver, ResolvedRates
from payroll_core.calculators.statutory import PhilippineContributionTable, StatutoryTables

__all__ = [
    "AttendanceAggregator",
    "CompositionInput",
    "DeductionEngine",
    "DeductionResult",
    "IncentiveEngine",
    "IncentiveResult",
    "PayslipCompositor",
    "PhilippineContributionTable",
    "RateResolver",
    "ResolvedRates",
    "StatutoryTables",
]
