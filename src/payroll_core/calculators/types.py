"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterator
from uuid import UUID

ZERO = Decimal("0")
CENTS = Decimal("0.01")

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def weekday_name(day: date) -> str:
    """Lowercase weekday name for a date."""
    return WEEKDAYS[day.weekday()]


def minutes_of(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


class SalaryType(str, Enum):
    """How ``basic_salary`` is quoted."""

    MONTHLY = "monthly"
    DAILY = "daily"
    HOURLY = "hourly"


class AttendanceStatus(str, Enum):
    """Attendance record status values."""

    PRESENT = "present"
    HALF_DAY = "half-day"
    ABSENT = "absent"
    LEAVE = "leave"


class HolidayType(str, Enum):
    """Holiday classes with distinct premiums."""

    REGULAR = "regular"
    SPECIAL = "special"


class DeductionType(str, Enum):
    """Deduction line categories."""

    GOVERNMENT = "government"
    CUSTOM = "custom"
    ATTENDANCE = "attendance"


class Frequency(str, Enum):
    """Whether a statutory deduction is taken in full or halved for a cutoff."""

    FULL = "full"
    HALF = "half"


@dataclass(frozen=True)
class Cutoff:
    """Inclusive date range covered by one payroll run."""

    start: date
    end: date

    def dates(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    @property
    def is_semi_monthly(self) -> bool:
        """Cutoffs of about half a month split monthly employer shares in two."""
        return (self.end - self.start).days <= 18

    def label(self) -> str:
        """Human-readable period, e.g. ``Jan 1 - Jan 15, 2025``."""
        start, end = self.start, self.end
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"


@dataclass(frozen=True)
class CompensationProfile:
    """Employee compensation as read from the employee directory."""

    salary_type: SalaryType
    basic_salary: Decimal
    allowance: Decimal | None = None
    regular_holiday_rate: Decimal | None = None
    special_holiday_rate: Decimal | None = None

    @property
    def allowance_amount(self) -> Decimal:
        return self.allowance if self.allowance is not None else ZERO


@dataclass(frozen=True)
class DaySchedule:
    """Default schedule for one weekday."""

    time_in: time
    time_out: time
    is_workday: bool = True


@dataclass(frozen=True)
class ScheduleOverride:
    """Date-specific schedule; its presence makes the date a workday."""

    date: date
    time_in: time
    time_out: time


@dataclass(frozen=True)
class ScheduleProfile:
    """Weekly schedule plus ordered per-date overrides."""

    weekly: dict[str, DaySchedule]
    overrides: tuple[ScheduleOverride, ...] = ()

    def missing_weekdays(self) -> list[str]:
        return [day for day in WEEKDAYS if day not in self.weekly]

    def override_for(self, day: date) -> ScheduleOverride | None:
        for override in self.overrides:
            if override.date == day:
                return override
        return None

    def is_rest_day(self, day: date) -> bool:
        if self.override_for(day) is not None:
            return False
        return not self.weekly[weekday_name(day)].is_workday

    def hours_for(self, day: date) -> tuple[time, time]:
        """Scheduled (in, out) for a date, override first."""
        override = self.override_for(day)
        if override is not None:
            return override.time_in, override.time_out
        entry = self.weekly[weekday_name(day)]
        return entry.time_in, entry.time_out


@dataclass(frozen=True)
class AttendanceRecord:
    """One day of attendance for one employee (read-only to this core).

    ``late`` is stored in minutes, ``undertime`` and ``overtime`` in hours.
    """

    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    actual_in: time | None = None
    actual_out: time | None = None
    late: int | None = None
    undertime: Decimal | None = None
    overtime: Decimal | None = None
    is_holiday: bool = False
    holiday_type: HolidayType | None = None
    paid_leave: bool = False
    remarks: str | None = None

    @property
    def is_worked(self) -> bool:
        return self.status in (AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY)

    @property
    def day_fraction(self) -> Decimal:
        return Decimal("0.5") if self.status == AttendanceStatus.HALF_DAY else Decimal("1")


@dataclass(frozen=True)
class Holiday:
    """Organization holiday calendar entry."""

    date: date
    holiday_type: HolidayType
    name: str = ""


@dataclass(frozen=True)
class DeductionSetting:
    """Enable/frequency toggle for one statutory deduction."""

    enabled: bool = True
    frequency: Frequency = Frequency.FULL

    def apply(self, base: Decimal) -> Decimal:
        if not self.enabled:
            return ZERO
        if self.frequency == Frequency.HALF:
            return base / 2
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DeductionSetting:
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", True)),
            frequency=Frequency(data.get("frequency", "full")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "frequency": self.frequency.value}


@dataclass(frozen=True)
class GovernmentDeductionSetting:
    """Per-employee statutory deduction policy for one payroll run."""

    sss: DeductionSetting = field(default_factory=DeductionSetting)
    pagibig: DeductionSetting = field(default_factory=DeductionSetting)
    philhealth: DeductionSetting = field(default_factory=DeductionSetting)
    tax: DeductionSetting = field(default_factory=DeductionSetting)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GovernmentDeductionSetting:
        data = data or {}
        return cls(
            sss=DeductionSetting.from_dict(data.get("sss")),
            pagibig=DeductionSetting.from_dict(data.get("pagibig")),
            philhealth=DeductionSetting.from_dict(data.get("philhealth")),
            tax=DeductionSetting.from_dict(data.get("tax")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sss": self.sss.to_dict(),
            "pagibig": self.pagibig.to_dict(),
            "philhealth": self.philhealth.to_dict(),
            "tax": self.tax.to_dict(),
        }


@dataclass(frozen=True)
class Deduction:
    """A deduction line on a payslip."""

    name: str
    amount: Decimal
    type: DeductionType = DeductionType.CUSTOM

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Deduction:
        return cls(
            name=data["name"],
            amount=Decimal(str(data["amount"])),
            type=DeductionType(data.get("type", "custom")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": str(self.amount), "type": self.type.value}


@dataclass(frozen=True)
class Incentive:
    """An ad-hoc incentive line item."""

    name: str
    amount: Decimal
    type: str = "incentive"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Incentive:
        return cls(
            name=data["name"],
            amount=Decimal(str(data["amount"])),
            type=data.get("type", "incentive"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": str(self.amount), "type": self.type}


@dataclass(frozen=True)
class StatutoryBase:
    """Full (unhalved) employee-share statutory amounts for one cutoff."""

    sss: Decimal = ZERO
    philhealth: Decimal = ZERO
    pagibig: Decimal = ZERO
    withholding_tax: Decimal = ZERO


@dataclass(frozen=True)
class EmployeeProfile:
    """What the employee directory returns for one employee."""

    employee_id: UUID
    name: str
    compensation: CompensationProfile | None
    schedule: ScheduleProfile | None
    department: str | None = None
    status: str = "active"
    organization_id: UUID | None = None


@dataclass(frozen=True)
class AttendanceSummary:
    """Attendance reduced over one cutoff."""

    days_worked: Decimal
    absences: int
    late_hours: Decimal
    undertime_hours: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    rest_day_pay: Decimal
    working_days_in_cutoff: int


@dataclass(frozen=True)
class PayslipResult:
    """Output of the payslip compositor for one employee and cutoff."""

    employee_id: UUID
    basic_pay: Decimal
    days_worked: Decimal
    absences: int
    late_hours: Decimal
    undertime_hours: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    rest_day_pay: Decimal
    deductions: tuple[Deduction, ...]
    incentives: tuple[Incentive, ...]
    incentive_total: Decimal
    non_taxable_allowance: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    truncated_deductions: Decimal
    net_pay: Decimal

    def deduction_amount(self, name: str) -> Decimal:
        return sum((d.amount for d in self.deductions if d.name == name), ZERO)

    def deduction_breakdown(self) -> dict[str, Decimal]:
        """Statutory lines by name plus everything else lumped as ``custom``."""
        statutory = {
            "sss": self.deduction_amount("SSS"),
            "philhealth": self.deduction_amount("PhilHealth"),
            "pagibig": self.deduction_amount("Pag-IBIG"),
            "withholding_tax": self.deduction_amount("Withholding Tax"),
        }
        custom = sum(
            (d.amount for d in self.deductions if d.type == DeductionType.CUSTOM),
            ZERO,
        )
        return {**statutory, "custom": custom}
