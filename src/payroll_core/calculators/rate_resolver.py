"""Pay rate resolution from compensation profile and org settings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_core.calculators.types import CompensationProfile, SalaryType
from payroll_core.config import OrgPayrollSettings

HOURS_PER_DAY = Decimal("8")
MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class ResolvedRates:
    """Daily and hourly rates for one employee."""

    salary_type: SalaryType
    daily_rate: Decimal
    hourly_rate: Decimal


class RateResolver:
    """Resolves daily/hourly rates for an employee.

    Rate derivation by salary type:
    - monthly: (basic + allowance if configured) * 12 / working days per year
    - daily:   basic salary is the daily rate
    - hourly:  basic salary is the hourly rate, a day is 8 hours

    Full-period basic pay for a semi-monthly cutoff is half the monthly
    salary for monthly employees and the daily rate times the working days in
    the cutoff otherwise.
    """

    def __init__(self, settings: OrgPayrollSettings):
        self.settings = settings

    def resolve(self, compensation: CompensationProfile) -> ResolvedRates:
        """Resolve daily and hourly rates."""
        basic = compensation.basic_salary
        salary_type = compensation.salary_type

        if salary_type == SalaryType.DAILY:
            daily = basic
            hourly = daily / HOURS_PER_DAY
        elif salary_type == SalaryType.HOURLY:
            hourly = basic
            daily = hourly * HOURS_PER_DAY
        else:
            monthly = basic
            if self.settings.daily_rate_includes_allowance:
                monthly += compensation.allowance_amount
            daily = (
                monthly
                * MONTHS_PER_YEAR
                / Decimal(self.settings.daily_rate_working_days_per_year)
            )
            hourly = daily / HOURS_PER_DAY

        return ResolvedRates(salary_type=salary_type, daily_rate=daily, hourly_rate=hourly)

    def monthly_equivalent(self, compensation: CompensationProfile) -> Decimal:
        """Monthly basic salary used for statutory contribution lookups."""
        if compensation.salary_type == SalaryType.MONTHLY:
            return compensation.basic_salary
        rates = self.resolve(compensation)
        return (
            rates.daily_rate
            * Decimal(self.settings.daily_rate_working_days_per_year)
            / MONTHS_PER_YEAR
        )

    def full_period_pay(
        self,
        compensation: CompensationProfile,
        working_days_in_cutoff: int,
    ) -> Decimal:
        """Basic pay for a cutoff with perfect attendance."""
        if compensation.salary_type == SalaryType.MONTHLY:
            return compensation.basic_salary / 2
        rates = self.resolve(compensation)
        return rates.daily_rate * working_days_in_cutoff
