"""Payslip compositor - the single computation path for preview and commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from payroll_core.calculators.attendance import AttendanceAggregator
from payroll_core.calculators.deductions import DeductionEngine
from payroll_core.calculators.incentives import IncentiveEngine
from payroll_core.calculators.rate_resolver import RateResolver
from payroll_core.calculators.statutory import PhilippineContributionTable, StatutoryTables
from payroll_core.calculators.types import (
    ZERO,
    AttendanceRecord,
    CompensationProfile,
    Cutoff,
    Deduction,
    EmployeeProfile,
    GovernmentDeductionSetting,
    Holiday,
    Incentive,
    PayslipResult,
    SalaryType,
    StatutoryBase,
    round_to_cents,
)
from payroll_core.config import OrgPayrollSettings
from payroll_core.errors import ComputationError


@dataclass(frozen=True)
class CompositionInput:
    """Everything one payslip depends on, already loaded from the ports."""

    employee: EmployeeProfile
    cutoff: Cutoff
    records: tuple[AttendanceRecord, ...] = ()
    holidays: tuple[Holiday, ...] = ()
    government_settings: GovernmentDeductionSetting = field(
        default_factory=GovernmentDeductionSetting
    )
    manual_deductions: tuple[Deduction, ...] = ()
    incentives: tuple[Incentive, ...] = ()
    deductions_enabled: bool = True
    deduction_overrides: Mapping[str, Decimal] = field(default_factory=dict)


class PayslipCompositor:
    """Composes a payslip from attendance, compensation and policy.

    Pipeline (stable order per employee):
    1) Validate compensation and a complete weekly schedule
    2) Resolve daily/hourly rates
    3) Aggregate attendance over the cutoff
    4) Basic pay, premiums and incentives into gross
    5) Statutory bases; withholding tax on gross less enabled contributions
    6) Deduction lines, capped at gross + allowance
    7) Net pay floored at zero

    The compositor performs no I/O; identical inputs give identical results.
    """

    def __init__(
        self,
        settings: OrgPayrollSettings | None = None,
        tables: StatutoryTables | None = None,
    ):
        self.settings = settings or OrgPayrollSettings()
        self.tables: StatutoryTables = tables or PhilippineContributionTable()
        self.rate_resolver = RateResolver(self.settings)
        self.aggregator = AttendanceAggregator(self.settings)
        self.deduction_engine = DeductionEngine()
        self.incentive_engine = IncentiveEngine()

    def compose(self, data: CompositionInput) -> PayslipResult:
        employee = data.employee
        compensation, schedule = self._validate(employee)

        rates = self.rate_resolver.resolve(compensation)
        summary = self.aggregator.aggregate(
            data.cutoff,
            schedule,
            data.records,
            rates,
            holidays=data.holidays,
            compensation=compensation,
        )

        basic_pay = round_to_cents(
            self.basic_pay(compensation, summary.days_worked, rates.daily_rate)
        )
        holiday_pay = round_to_cents(summary.holiday_pay)
        rest_day_pay = round_to_cents(summary.rest_day_pay)
        overtime_pay = round_to_cents(summary.overtime_pay)
        incentives = self.incentive_engine.compute(data.incentives)

        gross_pay = basic_pay + holiday_pay + rest_day_pay + overtime_pay + incentives.total
        allowance = round_to_cents(compensation.allowance_amount)

        statutory = self.statutory_base(
            compensation, gross_pay, data.government_settings
        )
        deductions = self.deduction_engine.compute(
            statutory,
            data.government_settings,
            data.manual_deductions,
            gross_pay,
            allowance,
            summary,
            rates,
            deductions_enabled=data.deductions_enabled,
            overrides=data.deduction_overrides,
        )

        net_pay = max(ZERO, gross_pay + allowance - deductions.total)

        return PayslipResult(
            employee_id=employee.employee_id,
            basic_pay=basic_pay,
            days_worked=summary.days_worked,
            absences=summary.absences,
            late_hours=round_to_cents(summary.late_hours),
            undertime_hours=round_to_cents(summary.undertime_hours),
            overtime_hours=round_to_cents(summary.overtime_hours),
            overtime_pay=overtime_pay,
            holiday_pay=holiday_pay,
            rest_day_pay=rest_day_pay,
            deductions=deductions.lines,
            incentives=incentives.items,
            incentive_total=incentives.total,
            non_taxable_allowance=allowance,
            gross_pay=gross_pay,
            total_deductions=deductions.total,
            truncated_deductions=deductions.truncated,
            net_pay=net_pay,
        )

    @staticmethod
    def basic_pay(
        compensation: CompensationProfile, days_worked: Decimal, daily_rate: Decimal
    ) -> Decimal:
        """Half the monthly salary, or the daily rate for each day worked."""
        if compensation.salary_type == SalaryType.MONTHLY:
            return compensation.basic_salary / 2
        return daily_rate * days_worked

    def statutory_base(
        self,
        compensation: CompensationProfile,
        gross_pay: Decimal,
        settings: GovernmentDeductionSetting,
    ) -> StatutoryBase:
        """Full employee-share amounts before enable/frequency toggles."""
        monthly_salary = self.rate_resolver.monthly_equivalent(compensation)
        contributions = self.tables.contributions(monthly_salary)

        taxable = gross_pay
        if settings.sss.enabled:
            taxable -= contributions.sss.employee
        if settings.philhealth.enabled:
            taxable -= contributions.philhealth.employee
        if settings.pagibig.enabled:
            taxable -= contributions.pagibig.employee

        return StatutoryBase(
            sss=contributions.sss.employee,
            philhealth=contributions.philhealth.employee,
            pagibig=contributions.pagibig.employee,
            withholding_tax=self.tables.withholding_tax(taxable),
        )

    @staticmethod
    def _validate(employee: EmployeeProfile):
        if employee.compensation is None:
            raise ComputationError(
                employee.employee_id,
                "employee has no compensation profile",
                field="compensation",
            )
        if employee.schedule is None:
            raise ComputationError(
                employee.employee_id,
                "employee has no schedule",
                field="schedule",
            )
        missing = employee.schedule.missing_weekdays()
        if missing:
            raise ComputationError(
                employee.employee_id,
                f"schedule is missing {', '.join(missing)}",
                field="schedule",
            )
        return employee.compensation, employee.schedule

