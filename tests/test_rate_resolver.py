"""Tests for pay rate resolution."""

from decimal import Decimal

from payroll_core.calculators.rate_resolver import RateResolver
from payroll_core.calculators.types import CompensationProfile, SalaryType
from payroll_core.config import OrgPayrollSettings


def compensation(salary_type: SalaryType, basic: str, allowance: str | None = None):
    return CompensationProfile(
        salary_type=salary_type,
        basic_salary=Decimal(basic),
        allowance=Decimal(allowance) if allowance is not None else None,
    )


class TestRateResolver:
    """Test daily and hourly rate derivation by salary type."""

    def test_monthly_rate_uses_working_days_per_year(self):
        """Monthly daily rate is basic * 12 / 261 by default."""
        resolver = RateResolver(OrgPayrollSettings())
        rates = resolver.resolve(compensation(SalaryType.MONTHLY, "20000"))

        expected_daily = Decimal("20000") * 12 / Decimal("261")
        assert rates.daily_rate == expected_daily
        assert rates.hourly_rate == expected_daily / 8
        assert rates.salary_type == SalaryType.MONTHLY

    def test_monthly_rate_ignores_allowance_by_default(self):
        resolver = RateResolver(OrgPayrollSettings())
        with_allowance = resolver.resolve(compensation(SalaryType.MONTHLY, "20000", "2000"))
        without = resolver.resolve(compensation(SalaryType.MONTHLY, "20000"))

        assert with_allowance.daily_rate == without.daily_rate

    def test_monthly_rate_includes_allowance_when_configured(self):
        resolver = RateResolver(OrgPayrollSettings(daily_rate_includes_allowance=True))
        rates = resolver.resolve(compensation(SalaryType.MONTHLY, "20000", "1000"))

        assert rates.daily_rate == Decimal("21000") * 12 / Decimal("261")

    def test_custom_working_days_per_year(self):
        resolver = RateResolver(OrgPayrollSettings(daily_rate_working_days_per_year=240))
        rates = resolver.resolve(compensation(SalaryType.MONTHLY, "24000"))

        assert rates.daily_rate == Decimal("1200")
        assert rates.hourly_rate == Decimal("150")

    def test_daily_rate(self):
        resolver = RateResolver(OrgPayrollSettings())
        rates = resolver.resolve(compensation(SalaryType.DAILY, "800"))

        assert rates.daily_rate == Decimal("800")
        assert rates.hourly_rate == Decimal("100")

    def test_hourly_rate(self):
        resolver = RateResolver(OrgPayrollSettings())
        rates = resolver.resolve(compensation(SalaryType.HOURLY, "100"))

        assert rates.hourly_rate == Decimal("100")
        assert rates.daily_rate == Decimal("800")


class TestFullPeriodPay:
    """Test perfect-attendance basic pay."""

    def test_monthly_is_half_salary(self):
        resolver = RateResolver(OrgPayrollSettings())
        pay = resolver.full_period_pay(compensation(SalaryType.MONTHLY, "20000"), 11)

        assert pay == Decimal("10000")

    def test_daily_scales_with_working_days(self):
        resolver = RateResolver(OrgPayrollSettings())
        pay = resolver.full_period_pay(compensation(SalaryType.DAILY, "800"), 11)

        assert pay == Decimal("8800")

    def test_hourly_scales_with_working_days(self):
        resolver = RateResolver(OrgPayrollSettings())
        pay = resolver.full_period_pay(compensation(SalaryType.HOURLY, "100"), 10)

        assert pay == Decimal("8000")


class TestMonthlyEquivalent:
    """Test the monthly salary used for statutory lookups."""

    def test_monthly_is_basic_salary(self):
        resolver = RateResolver(OrgPayrollSettings(daily_rate_includes_allowance=True))
        monthly = resolver.monthly_equivalent(
            compensation(SalaryType.MONTHLY, "20000", "3000")
        )

        assert monthly == Decimal("20000")

    def test_daily_annualized(self):
        resolver = RateResolver(OrgPayrollSettings())
        monthly = resolver.monthly_equivalent(compensation(SalaryType.DAILY, "800"))

        assert monthly == Decimal("17400")
