"""Attendance aggregation over a cutoff period."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from payroll_core.calculators.rate_resolver import ResolvedRates
from payroll_core.calculators.types import (
    ZERO,
    AttendanceRecord,
    AttendanceStatus,
    AttendanceSummary,
    CompensationProfile,
    Cutoff,
    Holiday,
    HolidayType,
    ScheduleProfile,
    minutes_of,
)
from payroll_core.config import OrgPayrollSettings

MINUTES_PER_HOUR = Decimal("60")


class AttendanceAggregator:
    """Reduces daily attendance records into cutoff totals.

    Absences are taken from the attendance source as-is: the source already
    nets out rest days, holidays and approved leave, so they are never
    recomputed from the schedule here. Overtime is only ever the stored,
    user-entered value.
    """

    def __init__(self, settings: OrgPayrollSettings):
        self.settings = settings

    def working_days(self, cutoff: Cutoff, schedule: ScheduleProfile) -> int:
        """Count non-rest days in the cutoff."""
        return sum(1 for day in cutoff.dates() if not schedule.is_rest_day(day))

    def aggregate(
        self,
        cutoff: Cutoff,
        schedule: ScheduleProfile,
        records: Iterable[AttendanceRecord],
        rates: ResolvedRates,
        holidays: Iterable[Holiday] = (),
        compensation: CompensationProfile | None = None,
    ) -> AttendanceSummary:
        in_range = sorted(
            (r for r in records if cutoff.start <= r.date <= cutoff.end),
            key=lambda r: r.date,
        )
        by_date = {r.date: r for r in in_range}
        holiday_by_date = {
            h.date: h for h in holidays if cutoff.start <= h.date <= cutoff.end
        }
        regular_rate, special_rate = self._holiday_rates(compensation)

        days_worked = ZERO
        absences = 0
        late_minutes = ZERO
        undertime_minutes = ZERO
        overtime_hours = ZERO
        overtime_pay = ZERO
        holiday_pay = ZERO
        rest_day_pay = ZERO

        for record in in_range:
            if record.status == AttendanceStatus.ABSENT:
                absences += 1
                continue
            if record.status == AttendanceStatus.LEAVE:
                if record.paid_leave:
                    days_worked += 1
                continue

            fraction = record.day_fraction
            days_worked += fraction
            is_rest = schedule.is_rest_day(record.date)
            holiday_type = self._holiday_type(record, holiday_by_date)

            if is_rest:
                rest_day_pay += rates.daily_rate * self.settings.rest_day_premium * fraction

            if holiday_type == HolidayType.REGULAR:
                holiday_pay += rates.daily_rate * regular_rate * fraction
            elif holiday_type == HolidayType.SPECIAL:
                holiday_pay += rates.daily_rate * special_rate * fraction

            late_minutes += self.late_minutes(record, schedule)
            undertime_minutes += self.undertime_minutes(record, schedule)

            if record.overtime:
                overtime_hours += record.overtime
                multiplier = self._overtime_multiplier(
                    is_rest, holiday_type, regular_rate, special_rate
                )
                overtime_pay += record.overtime * rates.hourly_rate * multiplier

        # Regular holidays are paid even when not worked
        for day, holiday in sorted(holiday_by_date.items()):
            if holiday.holiday_type != HolidayType.REGULAR:
                continue
            record = by_date.get(day)
            if record is None or record.status == AttendanceStatus.ABSENT:
                holiday_pay += rates.daily_rate * regular_rate

        return AttendanceSummary(
            days_worked=days_worked,
            absences=absences,
            late_hours=late_minutes / MINUTES_PER_HOUR,
            undertime_hours=undertime_minutes / MINUTES_PER_HOUR,
            overtime_hours=overtime_hours,
            overtime_pay=overtime_pay,
            holiday_pay=holiday_pay,
            rest_day_pay=rest_day_pay,
            working_days_in_cutoff=self.working_days(cutoff, schedule),
        )

    @staticmethod
    def late_minutes(record: AttendanceRecord, schedule: ScheduleProfile) -> Decimal:
        """Stored late minutes, else minutes clocked in after schedule."""
        if not record.is_worked:
            return ZERO
        if record.late is not None:
            return Decimal(record.late)
        if record.actual_in is None:
            return ZERO
        scheduled_in, _ = schedule.hours_for(record.date)
        return Decimal(max(0, minutes_of(record.actual_in) - minutes_of(scheduled_in)))

    @staticmethod
    def undertime_minutes(record: AttendanceRecord, schedule: ScheduleProfile) -> Decimal:
        """Stored undertime (hours) in minutes, else minutes left before schedule end."""
        if not record.is_worked:
            return ZERO
        if record.undertime is not None:
            return record.undertime * MINUTES_PER_HOUR
        if record.actual_out is None:
            return ZERO
        _, scheduled_out = schedule.hours_for(record.date)
        return Decimal(max(0, minutes_of(scheduled_out) - minutes_of(record.actual_out)))

    def _holiday_rates(
        self, compensation: CompensationProfile | None
    ) -> tuple[Decimal, Decimal]:
        regular = self.settings.regular_holiday_rate
        special = self.settings.special_holiday_rate
        if compensation is not None:
            if compensation.regular_holiday_rate is not None:
                regular = compensation.regular_holiday_rate
            if compensation.special_holiday_rate is not None:
                special = compensation.special_holiday_rate
        return regular, special

    @staticmethod
    def _holiday_type(
        record: AttendanceRecord, holiday_by_date: dict
    ) -> HolidayType | None:
        """Holiday tag on the record wins over the organization calendar."""
        if record.is_holiday and record.holiday_type is not None:
            return record.holiday_type
        holiday = holiday_by_date.get(record.date)
        return holiday.holiday_type if holiday else None

    def _overtime_multiplier(
        self,
        is_rest_day: bool,
        holiday_type: HolidayType | None,
        regular_rate: Decimal,
        special_rate: Decimal,
    ) -> Decimal:
        """Hourly multiplier for overtime on one day.

        Holiday overtime scales with the employee's holiday rate and takes an
        extra rest day premium when the holiday is also a rest day.
        """
        settings = self.settings
        if holiday_type is not None:
            if holiday_type == HolidayType.REGULAR:
                base = settings.regular_holiday_ot_base * regular_rate
            else:
                base = settings.special_holiday_ot_base * special_rate
            multiplier = base + settings.holiday_ot_premium
            if is_rest_day:
                multiplier += settings.rest_day_premium
            return multiplier
        if is_rest_day:
            return self.settings.overtime_rest_day_rate
        return self.settings.overtime_regular_rate
