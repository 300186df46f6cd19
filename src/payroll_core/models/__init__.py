"""ORM models."""

from payroll_core.models.accounting import CostItem
from payroll_core.models.base import Base, TimestampMixin
from payroll_core.models.employee import (
    Attendance,
    Employee,
    HolidayEntry,
    OrganizationSettings,
)
from payroll_core.models.payroll import PayrollRun, Payslip

__all__ = [
    "Attendance",
    "Base",
    "CostItem",
    "Employee",
    "HolidayEntry",
    "OrganizationSettings",
    "PayrollRun",
    "Payslip",
    "TimestampMixin",
]
