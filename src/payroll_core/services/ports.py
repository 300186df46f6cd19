"""Protocols for the collaborators the payroll core reads from and writes to.

The run service only talks to these protocols. SQL-backed adapters live in
``payroll_core.services.directory``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol
from uuid import UUID

from payroll_core.calculators.statutory import StatutoryTables
from payroll_core.calculators.types import AttendanceRecord, EmployeeProfile, Holiday
from payroll_core.config import OrgPayrollSettings

__all__ = [
    "AttendanceStore",
    "CostEntry",
    "CostLedger",
    "EmployeeDirectory",
    "HolidayCalendar",
    "OrganizationSettings",
    "StatutoryTables",
]


@dataclass(frozen=True)
class CostEntry:
    """One cost record produced when a run is finalized."""

    name: str
    amount: Decimal
    category: str
    description: str = ""
    notes: str = ""
    due_date: datetime.date | None = None


class EmployeeDirectory(Protocol):
    """Employee profiles by ID."""

    async def get_employees(self, employee_ids: Iterable[UUID]) -> dict[UUID, EmployeeProfile]:
        """Return the profiles that exist; unknown IDs are left out."""
        ...


class AttendanceStore(Protocol):
    """Read-only attendance records."""

    async def get_records(
        self,
        employee_id: UUID,
        start: datetime.date,
        end: datetime.date,
    ) -> list[AttendanceRecord]:
        """Records for one employee in the inclusive range, ordered by date."""
        ...


class HolidayCalendar(Protocol):
    """Organization holiday calendar."""

    async def get_holidays(
        self,
        organization_id: UUID,
        start: datetime.date,
        end: datetime.date,
    ) -> list[Holiday]:
        ...


class OrganizationSettings(Protocol):
    """Organization payroll policy."""

    async def get_settings(self, organization_id: UUID) -> OrgPayrollSettings:
        """Policy for the organization, defaults when none is stored."""
        ...


class CostLedger(Protocol):
    """Accounting cost records keyed by organization and name.

    Writes must be idempotent: recording the same names twice updates the
    existing records instead of adding new ones. A record belongs to the run
    that last recorded it; paying and removing only touch that run's records.
    """

    async def record(
        self,
        organization_id: UUID,
        payroll_run_id: UUID,
        entries: list[CostEntry],
    ) -> None:
        ...

    async def set_paid(
        self, organization_id: UUID, payroll_run_id: UUID, names: list[str], paid: bool
    ) -> None:
        ...

    async def remove(self, organization_id: UUID, payroll_run_id: UUID, names: list[str]) -> int:
        """Delete the run's records by name, returning how many were removed."""
        ...
