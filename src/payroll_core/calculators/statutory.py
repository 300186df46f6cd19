"""Philippine statutory contribution and withholding tax tables.

All inputs and outputs are monthly amounts. The SSS schedule maps a range of
compensation to fixed employee/employer shares; PhilHealth is 3% of basic
salary split evenly; Pag-IBIG is 2% per side capped at 100.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from payroll_core.calculators.types import ZERO


@dataclass(frozen=True)
class ContributionShares:
    """Employee and employer share of one contribution."""

    employee: Decimal
    employer: Decimal


@dataclass(frozen=True)
class Contributions:
    """Monthly statutory contributions for one salary."""

    sss: ContributionShares
    philhealth: ContributionShares
    pagibig: ContributionShares


@dataclass(frozen=True)
class SSSBracket:
    """One row of the SSS schedule; ``upper`` of None is open-ended."""

    lower: Decimal
    upper: Decimal | None
    employee_share: Decimal
    employer_share: Decimal

    def contains(self, salary: Decimal) -> bool:
        if salary < self.lower:
            return False
        return self.upper is None or salary <= self.upper


# (range lower, range upper, EE share, ER share incl. EC)
_SSS_ROWS = (
    ("0", "4249.99", "180", "410"),
    ("4250", "4749.99", "202.5", "452.5"),
    ("4750", "5249.99", "225", "495"),
    ("5250", "5749.99", "247.5", "537.5"),
    ("5750", "6249.99", "270", "580"),
    ("6250", "6749.99", "292.5", "622.5"),
    ("6750", "7249.99", "315", "665"),
    ("7250", "7749.99", "337.5", "707.5"),
    ("7750", "8249.99", "360", "750"),
    ("8250", "8749.99", "382.5", "792.5"),
    ("8750", "9249.99", "405", "835"),
    ("9250", "9749.99", "427.5", "877.5"),
    ("9750", "10249.99", "450", "920"),
    ("10250", "10749.99", "472.5", "962.5"),
    ("10750", "11249.99", "495", "1005"),
    ("11250", "11749.99", "517.5", "1047.5"),
    ("11750", "12249.99", "540", "1090"),
    ("12250", "12749.99", "562.5", "1132.5"),
    ("12750", "13249.99", "585", "1175"),
    ("13250", "13749.99", "607.5", "1217.5"),
    ("13750", "14249.99", "630", "1260"),
    ("14250", "14749.99", "652.5", "1302.5"),
    ("14750", "15249.99", "675", "1365"),
    ("15250", "15749.99", "697.5", "1407.5"),
    ("15750", "16249.99", "720", "1450"),
    ("16250", "16749.99", "742.5", "1492.5"),
    ("16750", "17249.99", "765", "1535"),
    ("17250", "17749.99", "787.5", "1577.5"),
    ("17750", "18249.99", "810", "1620"),
    ("18250", "18749.99", "832.5", "1662.5"),
    ("18750", "19249.99", "855", "1705"),
    ("19250", "19749.99", "877.5", "1747.5"),
    ("19750", "20249.99", "900", "1790"),
    ("20250", "20749.99", "922.5", "1977.5"),
    ("20750", "21249.99", "945", "2020"),
    ("21250", "21749.99", "967.5", "2062.5"),
    ("21750", "22249.99", "990", "2105"),
    ("22250", "22749.99", "1012.5", "2147.5"),
    ("22750", "23249.99", "1035", "2190"),
    ("23250", "23749.99", "1057.5", "2232.5"),
    ("23750", "24249.99", "1080", "2275"),
    ("24250", "24749.99", "1102.5", "2317.5"),
    ("24750", "25249.99", "1125", "2360"),
    ("25250", "25749.99", "1147.5", "2402.5"),
    ("25750", "26249.99", "1170", "2445"),
    ("26250", "26749.99", "1192.5", "2487.5"),
    ("26750", "27249.99", "1215", "2530"),
    ("27250", "27749.99", "1237.5", "2572.5"),
    ("27750", "28249.99", "1260", "2615"),
    ("28250", "28749.99", "1282.5", "2657.5"),
    ("28750", "29249.99", "1305", "2700"),
    ("29250", "29749.99", "1327.5", "2742.5"),
    ("29750", None, "1350", "2880"),
)

SSS_SCHEDULE = tuple(
    SSSBracket(
        lower=Decimal(lower),
        upper=Decimal(upper) if upper is not None else None,
        employee_share=Decimal(employee),
        employer_share=Decimal(employer),
    )
    for lower, upper, employee, employer in _SSS_ROWS
)

PHILHEALTH_RATE = Decimal("0.03")
PAGIBIG_RATE = Decimal("0.02")
PAGIBIG_CAP = Decimal("100")

# (upper bound, base tax, rate, excess over) per monthly taxable income
TAX_BRACKETS: tuple[tuple[Decimal | None, Decimal, Decimal, Decimal], ...] = (
    (Decimal("20833"), ZERO, ZERO, ZERO),
    (Decimal("33333"), ZERO, Decimal("0.20"), Decimal("20833")),
    (Decimal("66667"), Decimal("2500"), Decimal("0.25"), Decimal("33333")),
    (Decimal("166667"), Decimal("10833.33"), Decimal("0.30"), Decimal("66667")),
    (Decimal("666667"), Decimal("40833.33"), Decimal("0.32"), Decimal("166667")),
    (None, Decimal("200833.33"), Decimal("0.35"), Decimal("666667")),
)


class StatutoryTables(Protocol):
    """Contribution and tax lookups used by the compositor and the cost ledger."""

    def contributions(self, monthly_salary: Decimal) -> Contributions:
        """Monthly employee/employer shares for SSS, PhilHealth and Pag-IBIG."""
        ...

    def withholding_tax(self, taxable_income: Decimal) -> Decimal:
        """Withholding tax for a taxable amount."""
        ...


class PhilippineContributionTable:
    """Default ``StatutoryTables`` implementation."""

    def sss(self, monthly_salary: Decimal) -> ContributionShares:
        salary = max(ZERO, monthly_salary)
        for bracket in SSS_SCHEDULE:
            if bracket.contains(salary):
                return ContributionShares(bracket.employee_share, bracket.employer_share)
        # Gaps between .99 and the next bracket fall to the lower row
        for bracket in reversed(SSS_SCHEDULE):
            if salary >= bracket.lower:
                return ContributionShares(bracket.employee_share, bracket.employer_share)
        first = SSS_SCHEDULE[0]
        return ContributionShares(first.employee_share, first.employer_share)

    def philhealth(self, monthly_salary: Decimal) -> ContributionShares:
        share = max(ZERO, monthly_salary) * PHILHEALTH_RATE / 2
        return ContributionShares(share, share)

    def pagibig(self, monthly_salary: Decimal) -> ContributionShares:
        share = min(max(ZERO, monthly_salary) * PAGIBIG_RATE, PAGIBIG_CAP)
        return ContributionShares(share, share)

    def contributions(self, monthly_salary: Decimal) -> Contributions:
        return Contributions(
            sss=self.sss(monthly_salary),
            philhealth=self.philhealth(monthly_salary),
            pagibig=self.pagibig(monthly_salary),
        )

    def withholding_tax(self, taxable_income: Decimal) -> Decimal:
        """TRAIN law graduated withholding tax."""
        for upper, base, rate, excess_over in TAX_BRACKETS:
            if upper is None or taxable_income <= upper:
                return base + (taxable_income - excess_over) * rate
        return ZERO
