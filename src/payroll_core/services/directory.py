"""SQL adapters for the employee, attendance, holiday and settings ports."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_core.calculators.types import (
    WEEKDAYS,
    AttendanceRecord,
    AttendanceStatus,
    CompensationProfile,
    DaySchedule,
    EmployeeProfile,
    Holiday,
    HolidayType,
    SalaryType,
    ScheduleOverride,
    ScheduleProfile,
)
from payroll_core.config import OrgPayrollSettings
from payroll_core.models import Attendance, Employee, HolidayEntry
from payroll_core.models import OrganizationSettings as OrganizationSettingsModel


def _decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _time(value: str) -> datetime.time:
    return datetime.time.fromisoformat(value)


def compensation_from_json(data: dict[str, Any] | None) -> CompensationProfile | None:
    """Build a compensation profile from the employee's JSON column."""
    if not data:
        return None
    return CompensationProfile(
        salary_type=SalaryType(data.get("salary_type", "monthly")),
        basic_salary=Decimal(str(data.get("basic_salary", 0))),
        allowance=_decimal(data.get("allowance")),
        regular_holiday_rate=_decimal(data.get("regular_holiday_rate")),
        special_holiday_rate=_decimal(data.get("special_holiday_rate")),
    )


def schedule_from_json(data: dict[str, Any] | None) -> ScheduleProfile | None:
    """Build a schedule profile; weekdays missing from the JSON stay missing."""
    if not data:
        return None
    weekly = {}
    for day, entry in (data.get("weekly") or {}).items():
        if day not in WEEKDAYS:
            continue
        weekly[day] = DaySchedule(
            time_in=_time(entry["in"]),
            time_out=_time(entry["out"]),
            is_workday=bool(entry.get("is_workday", True)),
        )
    overrides = tuple(
        ScheduleOverride(
            date=datetime.date.fromisoformat(item["date"]),
            time_in=_time(item["in"]),
            time_out=_time(item["out"]),
        )
        for item in data.get("overrides") or []
    )
    return ScheduleProfile(weekly=weekly, overrides=overrides)


def employee_to_profile(employee: Employee) -> EmployeeProfile:
    return EmployeeProfile(
        employee_id=employee.employee_id,
        name=employee.name,
        compensation=compensation_from_json(employee.compensation),
        schedule=schedule_from_json(employee.schedule),
        department=employee.department,
        status=employee.status,
        organization_id=employee.organization_id,
    )


def attendance_to_record(row: Attendance) -> AttendanceRecord:
    return AttendanceRecord(
        date=row.date,
        status=AttendanceStatus(row.status),
        actual_in=row.actual_in,
        actual_out=row.actual_out,
        late=row.late,
        undertime=_decimal(row.undertime),
        overtime=_decimal(row.overtime),
        is_holiday=row.is_holiday,
        holiday_type=HolidayType(row.holiday_type) if row.holiday_type else None,
        paid_leave=row.paid_leave,
        remarks=row.remarks,
    )


class SqlEmployeeDirectory:
    """``EmployeeDirectory`` over the employee table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employees(self, employee_ids: Iterable[UUID]) -> dict[UUID, EmployeeProfile]:
        ids = list(employee_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(Employee).where(Employee.employee_id.in_(ids))
        )
        return {e.employee_id: employee_to_profile(e) for e in result.scalars()}


class SqlAttendanceStore:
    """``AttendanceStore`` over the attendance_record table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_records(
        self,
        employee_id: UUID,
        start: datetime.date,
        end: datetime.date,
    ) -> list[AttendanceRecord]:
        result = await self.session.execute(
            select(Attendance)
            .where(
                Attendance.employee_id == employee_id,
                Attendance.date >= start,
                Attendance.date <= end,
            )
            .order_by(Attendance.date)
        )
        return [attendance_to_record(row) for row in result.scalars()]


class SqlHolidayCalendar:
    """``HolidayCalendar`` over the holiday table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_holidays(
        self,
        organization_id: UUID,
        start: datetime.date,
        end: datetime.date,
    ) -> list[Holiday]:
        result = await self.session.execute(
            select(HolidayEntry)
            .where(
                HolidayEntry.organization_id == organization_id,
                HolidayEntry.date >= start,
                HolidayEntry.date <= end,
            )
            .order_by(HolidayEntry.date)
        )
        return [
            Holiday(date=h.date, holiday_type=HolidayType(h.holiday_type), name=h.name)
            for h in result.scalars()
        ]


class SqlOrganizationSettings:
    """``OrganizationSettings`` over the organization_settings table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_settings(self, organization_id: UUID) -> OrgPayrollSettings:
        row = await self.session.get(OrganizationSettingsModel, organization_id)
        if row is None:
            return OrgPayrollSettings()

        defaults = OrgPayrollSettings()
        overrides: dict[str, Any] = {}
        for name in (
            "regular_holiday_rate",
            "special_holiday_rate",
            "overtime_regular_rate",
            "overtime_rest_day_rate",
            "regular_holiday_ot_base",
            "special_holiday_ot_base",
            "holiday_ot_premium",
        ):
            value = getattr(row, name)
            overrides[name] = _decimal(value) if value is not None else getattr(defaults, name)

        return OrgPayrollSettings(
            daily_rate_includes_allowance=row.daily_rate_includes_allowance,
            daily_rate_working_days_per_year=row.daily_rate_working_days_per_year,
            **overrides,
        )
