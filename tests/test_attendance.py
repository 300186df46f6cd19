"""Tests for attendance aggregation."""

from datetime import date, time
from decimal import Decimal

from payroll_core.calculators.attendance import AttendanceAggregator
from payroll_core.calculators.types import (
    AttendanceRecord,
    AttendanceStatus,
    CompensationProfile,
    Holiday,
    HolidayType,
    SalaryType,
    ScheduleOverride,
    ScheduleProfile,
)
from payroll_core.config import OrgPayrollSettings

from tests.factories import JAN_FIRST_HALF, daily_rates, weekday_schedule


def present(day: date, time_in=time(8, 0), time_out=time(17, 0), **values) -> AttendanceRecord:
    return AttendanceRecord(date=day, actual_in=time_in, actual_out=time_out, **values)


def aggregate(records, holidays=(), schedule=None, settings=None):
    aggregator = AttendanceAggregator(settings or OrgPayrollSettings())
    return aggregator.aggregate(
        JAN_FIRST_HALF,
        schedule or weekday_schedule(),
        records,
        daily_rates(),
        holidays=holidays,
    )


class TestWorkingDays:
    """Test working day counting."""

    def test_weekdays_in_cutoff(self):
        aggregator = AttendanceAggregator(OrgPayrollSettings())

        assert aggregator.working_days(JAN_FIRST_HALF, weekday_schedule()) == 11

    def test_override_turns_rest_day_into_workday(self):
        base = weekday_schedule()
        schedule = ScheduleProfile(
            weekly=base.weekly,
            overrides=(ScheduleOverride(date(2025, 1, 4), time(9, 0), time(13, 0)),),
        )
        aggregator = AttendanceAggregator(OrgPayrollSettings())

        assert aggregator.working_days(JAN_FIRST_HALF, schedule) == 12
        assert schedule.is_rest_day(date(2025, 1, 4)) is False
        assert schedule.is_rest_day(date(2025, 1, 5)) is True


class TestDaysWorkedAndAbsences:
    """Test day counting by status."""

    def test_present_half_day_and_paid_leave(self):
        summary = aggregate(
            [
                present(date(2025, 1, 2)),
                present(date(2025, 1, 3), status=AttendanceStatus.HALF_DAY),
                AttendanceRecord(date(2025, 1, 6), status=AttendanceStatus.LEAVE, paid_leave=True),
                AttendanceRecord(date(2025, 1, 7), status=AttendanceStatus.LEAVE),
            ]
        )

        assert summary.days_worked == Decimal("2.5")
        assert summary.absences == 0

    def test_absences_are_counted_from_records(self):
        """Days without records are not treated as absences."""
        summary = aggregate(
            [
                AttendanceRecord(date(2025, 1, 2), status=AttendanceStatus.ABSENT),
                AttendanceRecord(date(2025, 1, 3), status=AttendanceStatus.ABSENT),
            ]
        )

        assert summary.absences == 2
        assert summary.days_worked == Decimal("0")

    def test_records_outside_cutoff_ignored(self):
        summary = aggregate(
            [
                present(date(2024, 12, 31)),
                present(date(2025, 1, 16)),
                present(date(2025, 1, 15)),
            ]
        )

        assert summary.days_worked == Decimal("1")


class TestLateAndUndertime:
    """Test late and undertime derivation."""

    def test_computed_from_schedule(self):
        summary = aggregate([present(date(2025, 1, 2), time(8, 15), time(16, 30))])

        assert summary.late_hours == Decimal("0.25")
        assert summary.undertime_hours == Decimal("0.5")

    def test_stored_values_take_precedence(self):
        summary = aggregate(
            [
                present(
                    date(2025, 1, 2),
                    time(9, 0),
                    time(15, 0),
                    late=6,
                    undertime=Decimal("0.25"),
                )
            ]
        )

        assert summary.late_hours == Decimal("0.1")
        assert summary.undertime_hours == Decimal("0.25")

    def test_early_arrival_is_not_negative(self):
        summary = aggregate([present(date(2025, 1, 2), time(7, 30), time(18, 0))])

        assert summary.late_hours == Decimal("0")
        assert summary.undertime_hours == Decimal("0")

    def test_absent_and_leave_skip_late(self):
        summary = aggregate(
            [
                AttendanceRecord(
                    date(2025, 1, 2),
                    status=AttendanceStatus.ABSENT,
                    actual_in=time(10, 0),
                    late=120,
                ),
                AttendanceRecord(date(2025, 1, 3), status=AttendanceStatus.LEAVE, late=30),
            ]
        )

        assert summary.late_hours == Decimal("0")

    def test_override_hours_used_for_late(self):
        base = weekday_schedule()
        schedule = ScheduleProfile(
            weekly=base.weekly,
            overrides=(ScheduleOverride(date(2025, 1, 2), time(10, 0), time(19, 0)),),
        )
        summary = aggregate(
            [present(date(2025, 1, 2), time(10, 30), time(19, 0))],
            schedule=schedule,
        )

        assert summary.late_hours == Decimal("0.5")


class TestPremiums:
    """Test rest day, holiday and overtime pay."""

    def test_worked_rest_day(self):
        summary = aggregate([present(date(2025, 1, 4))])

        assert summary.rest_day_pay == Decimal("800") * Decimal("0.3")
        assert summary.days_worked == Decimal("1")

    def test_unworked_regular_holiday_is_paid(self):
        holidays = [Holiday(date(2025, 1, 1), HolidayType.REGULAR, "New Year's Day")]
        summary = aggregate([], holidays=holidays)

        assert summary.holiday_pay == Decimal("800")

    def test_absent_on_regular_holiday_is_paid(self):
        holidays = [Holiday(date(2025, 1, 1), HolidayType.REGULAR)]
        records = [AttendanceRecord(date(2025, 1, 1), status=AttendanceStatus.ABSENT)]
        summary = aggregate(records, holidays=holidays)

        assert summary.holiday_pay == Decimal("800")

    def test_worked_special_holiday(self):
        holidays = [Holiday(date(2025, 1, 2), HolidayType.SPECIAL)]
        summary = aggregate([present(date(2025, 1, 2))], holidays=holidays)

        assert summary.holiday_pay == Decimal("800") * Decimal("0.3")

    def test_unworked_special_holiday_is_not_paid(self):
        holidays = [Holiday(date(2025, 1, 2), HolidayType.SPECIAL)]
        summary = aggregate([], holidays=holidays)

        assert summary.holiday_pay == Decimal("0")

    def test_record_tag_overrides_calendar(self):
        holidays = [Holiday(date(2025, 1, 2), HolidayType.SPECIAL)]
        record = present(date(2025, 1, 2), is_holiday=True, holiday_type=HolidayType.REGULAR)
        summary = aggregate([record], holidays=holidays)

        assert summary.holiday_pay == Decimal("800")

    def test_regular_day_overtime(self):
        summary = aggregate([present(date(2025, 1, 2), overtime=Decimal("2"))])

        assert summary.overtime_hours == Decimal("2")
        assert summary.overtime_pay == Decimal("2") * Decimal("100") * Decimal("1.25")

    def test_rest_day_overtime(self):
        summary = aggregate([present(date(2025, 1, 4), overtime=Decimal("1"))])

        assert summary.overtime_pay == Decimal("100") * Decimal("1.69")

    def test_regular_holiday_overtime(self):
        """Regular holiday OT is 2.0 x holiday rate plus the 0.3 OT premium."""
        holidays = [Holiday(date(2025, 1, 1), HolidayType.REGULAR)]
        summary = aggregate([present(date(2025, 1, 1), overtime=Decimal("2"))], holidays=holidays)

        assert summary.overtime_pay == Decimal("460")

    def test_special_holiday_overtime(self):
        holidays = [Holiday(date(2025, 1, 2), HolidayType.SPECIAL)]
        summary = aggregate([present(date(2025, 1, 2), overtime=Decimal("1"))], holidays=holidays)

        # 1.3 x 0.3 + 0.3
        assert summary.overtime_pay == Decimal("69")

    def test_holiday_on_rest_day_overtime(self):
        holidays = [Holiday(date(2025, 1, 4), HolidayType.REGULAR)]
        records = [
            present(date(2025, 1, 4), overtime=Decimal("1")),
            present(
                date(2025, 1, 5),
                overtime=Decimal("1"),
                is_holiday=True,
                holiday_type=HolidayType.SPECIAL,
            ),
        ]
        summary = aggregate(records, holidays=holidays)

        # Saturday regular holiday 2.6, Sunday special holiday 0.99
        assert summary.overtime_pay == Decimal("260") + Decimal("99")

    def test_holiday_overtime_uses_employee_rate(self):
        holidays = [Holiday(date(2025, 1, 1), HolidayType.REGULAR)]
        compensation = CompensationProfile(
            salary_type=SalaryType.DAILY,
            basic_salary=Decimal("800"),
            regular_holiday_rate=Decimal("2.0"),
        )
        summary = AttendanceAggregator(OrgPayrollSettings()).aggregate(
            JAN_FIRST_HALF,
            weekday_schedule(),
            [present(date(2025, 1, 1), overtime=Decimal("1"))],
            daily_rates(),
            holidays=holidays,
            compensation=compensation,
        )

        assert summary.overtime_pay == Decimal("430")

    def test_overtime_multiplier_from_settings(self):
        settings = OrgPayrollSettings(overtime_regular_rate=Decimal("1.5"))
        summary = aggregate(
            [present(date(2025, 1, 2), overtime=Decimal("1"))], settings=settings
        )

        assert summary.overtime_pay == Decimal("150")
