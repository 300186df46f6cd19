"""Read-only payroll run summary and its spreadsheet export."""

from __future__ import annotations

import csv
import datetime
import io
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_core.calculators.attendance import MINUTES_PER_HOUR, AttendanceAggregator
from payroll_core.calculators.types import (
    ZERO,
    AttendanceRecord,
    AttendanceStatus,
    Cutoff,
    HolidayType,
    ScheduleProfile,
    minutes_of,
    round_to_cents,
)
from payroll_core.errors import NotFoundError
from payroll_core.models import PayrollRun, Payslip
from payroll_core.services.directory import (
    SqlAttendanceStore,
    SqlEmployeeDirectory,
    SqlHolidayCalendar,
)
from payroll_core.services.ports import AttendanceStore, EmployeeDirectory, HolidayCalendar

NIGHT_START = 22 * 60
NIGHT_END = (24 + 6) * 60
DAY_MINUTES = 24 * 60


def night_diff_minutes(time_in: datetime.time | None, time_out: datetime.time | None) -> int:
    """Minutes of a shift that fall between 22:00 and 06:00 the next day.

    A clock-out at or before the clock-in is read as the next day.
    """
    if time_in is None or time_out is None:
        return 0
    start = minutes_of(time_in)
    end = minutes_of(time_out)
    if end <= start:
        end += DAY_MINUTES
    overlap = min(end, NIGHT_END) - max(start, NIGHT_START)
    return max(0, overlap)


@dataclass
class DailyAttendance:
    date: datetime.date
    status: str | None = None
    time_in: datetime.time | None = None
    time_out: datetime.time | None = None
    late_minutes: int = 0
    undertime_minutes: int = 0
    regular_ot_hours: Decimal = ZERO
    special_ot_hours: Decimal = ZERO
    night_diff_hours: Decimal = ZERO
    note: str | None = None

    def cell(self) -> str:
        """Spreadsheet cell for this day."""
        if self.status is None or self.time_in is None:
            return "-"
        if self.status == AttendanceStatus.ABSENT.value:
            return "ABSENT"
        if self.status == AttendanceStatus.LEAVE.value:
            return "LEAVE"
        value = f"{self.time_in:%H:%M}"
        if self.time_out is not None:
            value += f" - {self.time_out:%H:%M}"
        if self.late_minutes > 0:
            value += f" | {self.late_minutes} MIN L"
        return value

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "status": self.status,
            "time_in": self.time_in.strftime("%H:%M") if self.time_in else None,
            "time_out": self.time_out.strftime("%H:%M") if self.time_out else None,
            "late_minutes": self.late_minutes,
            "undertime_minutes": self.undertime_minutes,
            "regular_ot_hours": str(self.regular_ot_hours),
            "special_ot_hours": str(self.special_ot_hours),
            "night_diff_hours": str(self.night_diff_hours),
            "note": self.note,
        }


@dataclass
class EmployeeSummary:
    employee_id: UUID
    name: str
    daily: list[DailyAttendance] = field(default_factory=list)
    absent_days: int = 0
    gross_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO

    @property
    def total_late_minutes(self) -> int:
        return sum(d.late_minutes for d in self.daily)

    @property
    def total_undertime_minutes(self) -> int:
        return sum(d.undertime_minutes for d in self.daily)

    @property
    def total_regular_ot_hours(self) -> Decimal:
        return sum((d.regular_ot_hours for d in self.daily), ZERO)

    @property
    def total_special_ot_hours(self) -> Decimal:
        return sum((d.special_ot_hours for d in self.daily), ZERO)

    @property
    def total_night_diff_hours(self) -> Decimal:
        return sum((d.night_diff_hours for d in self.daily), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "name": self.name,
            "daily": [d.to_dict() for d in self.daily],
            "totals": {
                "late_minutes": self.total_late_minutes,
                "undertime_minutes": self.total_undertime_minutes,
                "regular_ot_hours": str(round_to_cents(self.total_regular_ot_hours)),
                "special_ot_hours": str(round_to_cents(self.total_special_ot_hours)),
                "night_diff_hours": str(round_to_cents(self.total_night_diff_hours)),
                "absent_days": self.absent_days,
            },
            "gross_pay": str(self.gross_pay),
            "total_deductions": str(self.total_deductions),
            "net_pay": str(self.net_pay),
        }


@dataclass
class RunSummary:
    run: PayrollRun
    dates: list[datetime.date]
    employees: list[EmployeeSummary]

    @property
    def total_gross_pay(self) -> Decimal:
        return sum((e.gross_pay for e in self.employees), ZERO)

    @property
    def total_deductions(self) -> Decimal:
        return sum((e.total_deductions for e in self.employees), ZERO)

    @property
    def total_net_pay(self) -> Decimal:
        return sum((e.net_pay for e in self.employees), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "payroll_run_id": str(self.run.payroll_run_id),
            "period": self.run.period,
            "status": self.run.status,
            "dates": [d.isoformat() for d in self.dates],
            "employees": [e.to_dict() for e in self.employees],
            "totals": {
                "employees": len(self.employees),
                "gross_pay": str(self.total_gross_pay),
                "total_deductions": str(self.total_deductions),
                "net_pay": str(self.total_net_pay),
            },
        }


class SummaryService:
    """Builds the per-day attendance grid of a payroll run.

    Nothing here writes: the summary is derived from the stored payslips and
    the attendance records of the run's cutoff at read time.
    """

    HEADER_TOTALS = [
        "Total Late (min)",
        "Total Undertime (min)",
        "Total Reg. OT (hrs)",
        "Total Special OT (hrs)",
        "Total Night Diff (hrs)",
        "Absent Days",
    ]

    def __init__(
        self,
        session: AsyncSession,
        employees: EmployeeDirectory | None = None,
        attendance: AttendanceStore | None = None,
        holidays: HolidayCalendar | None = None,
    ):
        self.session = session
        self.employees = employees or SqlEmployeeDirectory(session)
        self.attendance = attendance or SqlAttendanceStore(session)
        self.holidays = holidays or SqlHolidayCalendar(session)

    async def get_payroll_run_summary(self, payroll_run_id: UUID) -> RunSummary:
        run = await self.session.get(PayrollRun, payroll_run_id)
        if run is None:
            raise NotFoundError("Payroll run", payroll_run_id)

        cutoff = Cutoff(run.cutoff_start, run.cutoff_end)
        dates = list(cutoff.dates())
        result = await self.session.execute(
            select(Payslip).where(Payslip.payroll_run_id == payroll_run_id)
        )
        payslips = {p.employee_id: p for p in result.scalars()}

        employee_ids = [UUID(i) for i in run.employee_ids]
        profiles = await self.employees.get_employees(employee_ids)
        calendar = await self.holidays.get_holidays(
            run.organization_id, cutoff.start, cutoff.end
        )
        special_days = {h.date for h in calendar if h.holiday_type == HolidayType.SPECIAL}

        rows = []
        for employee_id in employee_ids:
            profile = profiles.get(employee_id)
            if profile is None:
                continue
            records = await self.attendance.get_records(employee_id, cutoff.start, cutoff.end)
            by_date = {r.date: r for r in records}

            row = EmployeeSummary(employee_id=employee_id, name=profile.name)
            for day in dates:
                record = by_date.get(day)
                if record is None:
                    row.daily.append(DailyAttendance(date=day))
                    continue
                row.daily.append(self._daily(record, profile.schedule, special_days))
                if record.status == AttendanceStatus.ABSENT and not record.paid_leave:
                    row.absent_days += 1

            payslip = payslips.get(employee_id)
            if payslip is not None:
                row.gross_pay = Decimal(payslip.gross_pay)
                row.total_deductions = Decimal(payslip.total_deductions)
                row.net_pay = Decimal(payslip.net_pay)
            rows.append(row)

        return RunSummary(run=run, dates=dates, employees=rows)

    async def export_csv(self, payroll_run_id: UUID) -> str:
        """Export the run summary as CSV, one row per employee."""
        summary = await self.get_payroll_run_summary(payroll_run_id)
        return self.render_csv(summary)

    @classmethod
    def render_csv(cls, summary: RunSummary) -> str:
        output = io.StringIO()
        header = csv.writer(output, lineterminator="\n")
        header.writerow(
            ["Employee", *(f"{d:%b %d}" for d in summary.dates), *cls.HEADER_TOTALS]
        )

        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for row in summary.employees:
            writer.writerow(
                [
                    row.name,
                    *(d.cell() for d in row.daily),
                    row.total_late_minutes,
                    row.total_undertime_minutes,
                    str(round_to_cents(row.total_regular_ot_hours)),
                    str(round_to_cents(row.total_special_ot_hours)),
                    str(round_to_cents(row.total_night_diff_hours)),
                    row.absent_days,
                ]
            )
        return output.getvalue()

    @staticmethod
    def _daily(
        record: AttendanceRecord,
        schedule: ScheduleProfile | None,
        special_days: set[datetime.date],
    ) -> DailyAttendance:
        day = DailyAttendance(
            date=record.date,
            status=record.status.value,
            time_in=record.actual_in,
            time_out=record.actual_out,
            note=record.remarks,
        )
        if not record.is_worked:
            return day

        if schedule is not None:
            day.late_minutes = int(AttendanceAggregator.late_minutes(record, schedule))
            day.undertime_minutes = int(
                AttendanceAggregator.undertime_minutes(record, schedule)
            )
        else:
            day.late_minutes = record.late or 0
            if record.undertime is not None:
                day.undertime_minutes = int(record.undertime * MINUTES_PER_HOUR)

        overtime = record.overtime or ZERO
        is_special = (
            record.holiday_type == HolidayType.SPECIAL
            if record.is_holiday and record.holiday_type is not None
            else record.date in special_days
        )
        if is_special:
            day.special_ot_hours = overtime
        else:
            day.regular_ot_hours = overtime

        minutes = night_diff_minutes(record.actual_in, record.actual_out)
        day.night_diff_hours = Decimal(minutes) / MINUTES_PER_HOUR
        return day
