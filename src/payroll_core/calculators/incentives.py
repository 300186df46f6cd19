"""Incentive aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from payroll_core.calculators.types import ZERO, Incentive, round_to_cents


@dataclass(frozen=True)
class IncentiveResult:
    """Incentive lines kept for audit plus their total."""

    items: tuple[Incentive, ...]
    total: Decimal


class IncentiveEngine:
    """Sums named incentives.

    Amounts are not range-checked here; negative entries are rejected at the
    API boundary.
    """

    def compute(self, incentives: Sequence[Incentive]) -> IncentiveResult:
        items = tuple(
            Incentive(name=i.name, amount=round_to_cents(i.amount), type=i.type)
            for i in incentives
        )
        return IncentiveResult(items=items, total=sum((i.amount for i in items), ZERO))
