"""Deduction engine: statutory, manual and attendance deduction lines."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Sequence

from payroll_core.calculators.rate_resolver import ResolvedRates
from payroll_core.calculators.types import (
    ZERO,
    AttendanceSummary,
    Deduction,
    DeductionType,
    GovernmentDeductionSetting,
    SalaryType,
    StatutoryBase,
    round_to_cents,
)

SSS = "SSS"
PHILHEALTH = "PhilHealth"
PAGIBIG = "Pag-IBIG"
WITHHOLDING_TAX = "Withholding Tax"
LATE = "Late"
UNDERTIME = "Undertime"


def absent_line_name(absences: int) -> str:
    return f"Absent ({absences} {'day' if absences == 1 else 'days'})"


@dataclass(frozen=True)
class DeductionResult:
    """Deduction lines for one payslip plus capped totals."""

    lines: tuple[Deduction, ...]
    raw_total: Decimal
    total: Decimal
    truncated: Decimal


class DeductionEngine:
    """Builds the deduction lines of a payslip.

    Rules:
    1. Statutory lines: enabled ? (half ? base/2 : base) : 0, emitted when > 0,
       and never when the run has deductions disabled
    2. Manual lines are taken as entered
    3. Attendance lines: late and undertime hours at the hourly rate; absences
       at the daily rate for monthly employees only
    4. Overrides replace the amount of a line with the same name
    5. Total is capped at gross + allowance; the excess is dropped and
       reported as ``truncated``
    """

    def compute(
        self,
        statutory: StatutoryBase,
        settings: GovernmentDeductionSetting,
        manual: Sequence[Deduction],
        gross_pay: Decimal,
        non_taxable_allowance: Decimal,
        attendance: AttendanceSummary,
        rates: ResolvedRates,
        deductions_enabled: bool = True,
        overrides: Mapping[str, Decimal] | None = None,
    ) -> DeductionResult:
        lines: list[Deduction] = []

        if deductions_enabled:
            lines.extend(self.statutory_lines(statutory, settings))
        lines.extend(
            Deduction(name=d.name, amount=round_to_cents(d.amount), type=d.type)
            for d in manual
        )
        lines.extend(self.attendance_lines(attendance, rates))

        if overrides:
            lines = self._apply_overrides(lines, overrides)

        raw_total = sum((line.amount for line in lines), ZERO)
        available = max(ZERO, gross_pay + non_taxable_allowance)
        total = min(raw_total, available)

        return DeductionResult(
            lines=tuple(lines),
            raw_total=raw_total,
            total=total,
            truncated=raw_total - total,
        )

    @staticmethod
    def statutory_lines(
        statutory: StatutoryBase, settings: GovernmentDeductionSetting
    ) -> list[Deduction]:
        lines = []
        for name, base, setting in (
            (SSS, statutory.sss, settings.sss),
            (PHILHEALTH, statutory.philhealth, settings.philhealth),
            (PAGIBIG, statutory.pagibig, settings.pagibig),
            (WITHHOLDING_TAX, statutory.withholding_tax, settings.tax),
        ):
            amount = round_to_cents(setting.apply(base))
            if amount > 0:
                lines.append(Deduction(name=name, amount=amount, type=DeductionType.GOVERNMENT))
        return lines

    @staticmethod
    def attendance_lines(
        attendance: AttendanceSummary, rates: ResolvedRates
    ) -> list[Deduction]:
        late = round_to_cents(attendance.late_hours * rates.hourly_rate)
        undertime = round_to_cents(attendance.undertime_hours * rates.hourly_rate)
        absent = ZERO
        if rates.salary_type == SalaryType.MONTHLY:
            absent = round_to_cents(attendance.absences * rates.daily_rate)

        lines = []
        if late > 0:
            lines.append(Deduction(name=LATE, amount=late, type=DeductionType.ATTENDANCE))
        if undertime > 0:
            lines.append(
                Deduction(name=UNDERTIME, amount=undertime, type=DeductionType.ATTENDANCE)
            )
        if absent > 0:
            lines.append(
                Deduction(
                    name=absent_line_name(attendance.absences),
                    amount=absent,
                    type=DeductionType.ATTENDANCE,
                )
            )
        return lines

    @staticmethod
    def _apply_overrides(
        lines: list[Deduction], overrides: Mapping[str, Decimal]
    ) -> list[Deduction]:
        """Replace matching line amounts; a line overridden to zero is removed."""
        result = []
        for line in lines:
            if line.name in overrides:
                amount = round_to_cents(overrides[line.name])
                if amount <= 0:
                    continue
                line = Deduction(name=line.name, amount=amount, type=line.type)
            result.append(line)
        return result
