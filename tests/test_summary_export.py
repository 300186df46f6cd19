"""Tests for the payroll run summary grid and CSV export."""

from datetime import date, time
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_core.calculators.types import (
    AttendanceRecord,
    AttendanceStatus,
    Holiday,
    HolidayType,
)
from payroll_core.errors import NotFoundError
from payroll_core.services.payroll_run_service import PayrollRunService
from payroll_core.services.summary_service import (
    DailyAttendance,
    SummaryService,
    night_diff_minutes,
)

from tests.factories import ORG_ID, weekday_schedule

HEADER = (
    "Employee,Jan 02,Jan 03,Total Late (min),Total Undertime (min),"
    "Total Reg. OT (hrs),Total Special OT (hrs),Total Night Diff (hrs),Absent Days\n"
)


class StaticHolidays:
    def __init__(self, *holidays: Holiday):
        self.holidays = list(holidays)

    async def get_holidays(self, organization_id, start, end):
        return [h for h in self.holidays if start <= h.date <= end]


class StaticAttendance:
    def __init__(self, *records: AttendanceRecord):
        self.records = list(records)

    async def get_records(self, employee_id, start, end):
        return [r for r in self.records if start <= r.date <= end]


async def two_day_run(session, employees):
    service = PayrollRunService(session)
    return await service.create_payroll_run(
        ORG_ID,
        date(2025, 1, 2),
        date(2025, 1, 3),
        [employees["monthly"].employee_id, employees["daily"].employee_id],
    )


class TestNightDiff:
    """Night differential window is 22:00 to 06:00."""

    def test_day_shift(self):
        assert night_diff_minutes(time(8, 0), time(17, 0)) == 0

    def test_shift_across_midnight(self):
        assert night_diff_minutes(time(20, 0), time(2, 0)) == 240

    def test_graveyard_shift(self):
        assert night_diff_minutes(time(23, 0), time(7, 0)) == 420

    def test_missing_clock(self):
        assert night_diff_minutes(time(22, 0), None) == 0


class TestDailyCell:
    def test_no_record(self):
        assert DailyAttendance(date=date(2025, 1, 2)).cell() == "-"

    def test_absent_without_clock_shows_dash(self):
        day = DailyAttendance(date=date(2025, 1, 2), status="absent")

        assert day.cell() == "-"

    def test_leave_with_clock(self):
        day = DailyAttendance(date=date(2025, 1, 2), status="leave", time_in=time(8, 0))

        assert day.cell() == "LEAVE"

    def test_late_suffix(self):
        day = DailyAttendance(
            date=date(2025, 1, 2),
            status="present",
            time_in=time(8, 15),
            time_out=time(17, 0),
            late_minutes=15,
        )

        assert day.cell() == "08:15 - 17:00 | 15 MIN L"


class TestDailyAttendance:
    """Per-day derivation from an attendance record."""

    def test_special_holiday_overtime_and_night_diff(self):
        record = AttendanceRecord(
            date=date(2025, 1, 6),
            actual_in=time(14, 0),
            actual_out=time(23, 0),
            overtime=Decimal("2"),
        )

        day = SummaryService._daily(record, weekday_schedule(), {date(2025, 1, 6)})

        assert day.special_ot_hours == Decimal("2")
        assert day.regular_ot_hours == Decimal("0")
        assert day.night_diff_hours == Decimal("1")
        assert day.late_minutes == 360

    def test_record_tag_wins_over_calendar(self):
        record = AttendanceRecord(
            date=date(2025, 1, 6),
            actual_in=time(8, 0),
            actual_out=time(19, 0),
            overtime=Decimal("2"),
            is_holiday=True,
            holiday_type=HolidayType.REGULAR,
        )

        day = SummaryService._daily(record, weekday_schedule(), {date(2025, 1, 6)})

        assert day.regular_ot_hours == Decimal("2")
        assert day.special_ot_hours == Decimal("0")

    def test_absent_record_has_no_metrics(self):
        record = AttendanceRecord(date=date(2025, 1, 6), status=AttendanceStatus.ABSENT)

        day = SummaryService._daily(record, weekday_schedule(), set())

        assert day.status == "absent"
        assert day.late_minutes == 0
        assert day.night_diff_hours == Decimal("0")


class TestRunSummary:
    """Summary of a stored run."""

    async def test_grid(self, session, employees):
        run_id = await two_day_run(session, employees)

        summary = await SummaryService(session).get_payroll_run_summary(run_id)
        monthly, daily = summary.employees

        assert summary.dates == [date(2025, 1, 2), date(2025, 1, 3)]
        assert monthly.name == "Maria Santos"
        assert [d.cell() for d in monthly.daily] == ["08:00 - 17:00", "-"]
        assert monthly.absent_days == 1
        assert [d.cell() for d in daily.daily] == ["08:00 - 17:00", "08:30 - 17:00 | 30 MIN L"]
        assert daily.total_late_minutes == 30
        assert daily.absent_days == 0
        assert daily.net_pay == Decimal("401.50")

    async def test_to_dict(self, session, employees):
        run_id = await two_day_run(session, employees)

        data = (await SummaryService(session).get_payroll_run_summary(run_id)).to_dict()

        assert data["payroll_run_id"] == str(run_id)
        assert data["period"] == "Jan 2 - Jan 3, 2025"
        assert data["status"] == "draft"
        assert data["dates"] == ["2025-01-02", "2025-01-03"]
        assert data["totals"]["employees"] == 2
        assert data["employees"][1]["totals"]["late_minutes"] == 30
        assert data["employees"][0]["totals"]["absent_days"] == 1

    async def test_special_holiday_from_calendar(self, session, employees):
        run_id = await two_day_run(session, employees)
        holidays = StaticHolidays(Holiday(date(2025, 1, 2), HolidayType.SPECIAL))
        attendance = StaticAttendance(
            AttendanceRecord(
                date=date(2025, 1, 2),
                actual_in=time(8, 0),
                actual_out=time(19, 0),
                overtime=Decimal("2"),
            ),
            AttendanceRecord(
                date=date(2025, 1, 3),
                actual_in=time(8, 0),
                actual_out=time(19, 0),
                overtime=Decimal("1.5"),
            ),
        )
        service = SummaryService(session, attendance=attendance, holidays=holidays)

        summary = await service.get_payroll_run_summary(run_id)
        row = summary.employees[0]

        assert row.total_special_ot_hours == Decimal("2")
        assert row.total_regular_ot_hours == Decimal("1.5")

    async def test_missing_run(self, session):
        with pytest.raises(NotFoundError):
            await SummaryService(session).get_payroll_run_summary(uuid4())


class TestCsvExport:
    async def test_export(self, session, employees):
        run_id = await two_day_run(session, employees)

        content = await SummaryService(session).export_csv(run_id)

        assert content == (
            HEADER
            + '"Maria Santos","08:00 - 17:00","-","0","0","0.00","0.00","0.00","1"\n'
            + '"Jose Reyes","08:00 - 17:00","08:30 - 17:00 | 30 MIN L",'
            + '"30","0","0.00","0.00","0.00","0"\n'
        )

    async def test_header_only_quotes_when_needed(self, session, employees):
        run_id = await two_day_run(session, employees)

        content = await SummaryService(session).export_csv(run_id)

        assert content.splitlines()[0] == HEADER.rstrip("\n")
        assert content.splitlines()[0].startswith("Employee,")
