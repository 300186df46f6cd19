"""Cost ledger records produced by payroll finalization."""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_core.calculators.rate_resolver import RateResolver
from payroll_core.calculators.statutory import StatutoryTables
from payroll_core.calculators.types import ZERO, Cutoff, EmployeeProfile, round_to_cents
from payroll_core.config import OrgPayrollSettings
from payroll_core.models import CostItem, PayrollRun, Payslip
from payroll_core.services.ports import CostEntry, CostLedger

logger = logging.getLogger(__name__)

CATEGORY = "Employee Related Cost"
DUE_AFTER = timedelta(days=7)


def cost_item_names(cutoff: Cutoff) -> list[str]:
    """Names of every cost record a run over ``cutoff`` may write."""
    period = cutoff.label()
    return [
        f"Payroll - {period}",
        f"SSS Contribution - {period}",
        f"PhilHealth Contribution - {period}",
        f"Pag-IBIG Contribution - {period}",
    ]


class LedgerService:
    """Builds and reverses the cost records of a payroll run.

    Entries written at finalize:
    - Payroll: sum of gross pay plus non-taxable allowance
    - SSS / PhilHealth / Pag-IBIG: employer shares, halved for
      semi-monthly cutoffs

    Entries with a zero amount are skipped. Records are keyed by name, so
    finalizing the same period again updates them in place.
    """

    def __init__(self, ledger: CostLedger, tables: StatutoryTables):
        self.ledger = ledger
        self.tables = tables

    def build_entries(
        self,
        run: PayrollRun,
        payslips: Sequence[Payslip],
        profiles: dict[UUID, EmployeeProfile],
        settings: OrgPayrollSettings,
    ) -> list[CostEntry]:
        cutoff = Cutoff(run.cutoff_start, run.cutoff_end)
        resolver = RateResolver(settings)
        divisor = 2 if cutoff.is_semi_monthly else 1

        total_salary = ZERO
        total_gross = ZERO
        total_allowance = ZERO
        employer_sss = ZERO
        employer_philhealth = ZERO
        employer_pagibig = ZERO

        for payslip in payslips:
            gross = Decimal(payslip.gross_pay)
            allowance = Decimal(payslip.non_taxable_allowance)
            total_gross += gross
            total_allowance += allowance
            total_salary += gross + allowance

            profile = profiles.get(payslip.employee_id)
            if profile is None or profile.compensation is None:
                continue
            monthly = resolver.monthly_equivalent(profile.compensation)
            shares = self.tables.contributions(monthly)
            employer_sss += shares.sss.employer / divisor
            employer_philhealth += shares.philhealth.employer / divisor
            employer_pagibig += shares.pagibig.employer / divisor

        names = cost_item_names(cutoff)
        due = run.cutoff_end + DUE_AFTER
        count = len(payslips)
        plural = "s" if count != 1 else ""

        entries = [
            CostEntry(
                name=names[0],
                amount=round_to_cents(total_salary),
                category=CATEGORY,
                description=(
                    f"Total salary expense for cutoff period {run.period} "
                    f"({count} payslip{plural})"
                ),
                notes=(
                    f"Payslips: {count}, Gross Pay: {round_to_cents(total_gross)}, "
                    f"Allowances: {round_to_cents(total_allowance)}"
                ),
                due_date=due,
            ),
        ]
        for name, label, amount in (
            (names[1], "SSS", employer_sss),
            (names[2], "PhilHealth", employer_philhealth),
            (names[3], "Pag-IBIG", employer_pagibig),
        ):
            entries.append(
                CostEntry(
                    name=name,
                    amount=round_to_cents(amount),
                    category=CATEGORY,
                    description=(
                        f"Company share of {label} contribution "
                        f"for cutoff period {run.period}"
                    ),
                    due_date=due,
                )
            )
        return [e for e in entries if e.amount > 0]

    async def record_finalized(
        self,
        run: PayrollRun,
        payslips: Sequence[Payslip],
        profiles: dict[UUID, EmployeeProfile],
        settings: OrgPayrollSettings,
    ) -> list[CostEntry]:
        entries = self.build_entries(run, payslips, profiles, settings)
        await self.ledger.record(run.organization_id, run.payroll_run_id, entries)
        logger.info(
            "Recorded %d cost item(s) for payroll run %s", len(entries), run.payroll_run_id
        )
        return entries

    async def set_paid(self, run: PayrollRun, paid: bool) -> None:
        cutoff = Cutoff(run.cutoff_start, run.cutoff_end)
        await self.ledger.set_paid(
            run.organization_id, run.payroll_run_id, cost_item_names(cutoff), paid
        )

    async def remove(self, run: PayrollRun) -> int:
        cutoff = Cutoff(run.cutoff_start, run.cutoff_end)
        removed = await self.ledger.remove(
            run.organization_id, run.payroll_run_id, cost_item_names(cutoff)
        )
        logger.info("Removed %d cost item(s) for payroll run %s", removed, run.payroll_run_id)
        return removed


class SqlCostLedger:
    """``CostLedger`` over the cost_item table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        organization_id: UUID,
        payroll_run_id: UUID,
        entries: list[CostEntry],
    ) -> None:
        existing = await self._by_name(organization_id, [e.name for e in entries])
        now = datetime.now(timezone.utc)

        for entry in entries:
            item = existing.get(entry.name)
            if item is None:
                self.session.add(
                    CostItem(
                        organization_id=organization_id,
                        payroll_run_id=payroll_run_id,
                        category=entry.category,
                        name=entry.name,
                        description=entry.description,
                        amount=entry.amount,
                        amount_paid=ZERO,
                        status="pending",
                        due_date=entry.due_date,
                        notes=entry.notes or None,
                        updated_at=None,
                    )
                )
                continue
            item.payroll_run_id = payroll_run_id
            item.description = entry.description
            item.amount = entry.amount
            item.amount_paid = min(Decimal(item.amount_paid or 0), entry.amount)
            item.due_date = entry.due_date
            item.notes = entry.notes or None
            item.updated_at = now

        await self.session.flush()

    async def set_paid(
        self, organization_id: UUID, payroll_run_id: UUID, names: list[str], paid: bool
    ) -> None:
        items = await self._by_name(organization_id, names)
        now = datetime.now(timezone.utc)
        for item in items.values():
            if item.payroll_run_id != payroll_run_id:
                continue
            item.status = "paid" if paid else "pending"
            item.amount_paid = item.amount if paid else ZERO
            item.updated_at = now
        await self.session.flush()

    async def remove(self, organization_id: UUID, payroll_run_id: UUID, names: list[str]) -> int:
        result = await self.session.execute(
            delete(CostItem).where(
                CostItem.organization_id == organization_id,
                CostItem.payroll_run_id == payroll_run_id,
                CostItem.name.in_(names),
            )
        )
        return result.rowcount or 0

    async def list_items(
        self, organization_id: UUID, names: Iterable[str] | None = None
    ) -> list[CostItem]:
        query = select(CostItem).where(CostItem.organization_id == organization_id)
        if names is not None:
            query = query.where(CostItem.name.in_(list(names)))
        result = await self.session.execute(query.order_by(CostItem.name))
        return list(result.scalars())

    async def _by_name(self, organization_id: UUID, names: list[str]) -> dict[str, CostItem]:
        if not names:
            return {}
        items = await self.list_items(organization_id, names)
        return {item.name: item for item in items}


def export_cost_items_csv(items: Sequence[CostItem]) -> str:
    """Export cost items to CSV format."""
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["Name", "Category", "Amount", "Amount Paid", "Status", "Due Date"])
    for item in items:
        writer.writerow(
            [
                item.name,
                item.category,
                str(item.amount),
                str(item.amount_paid),
                item.status,
                item.due_date.isoformat() if item.due_date else "",
            ]
        )

    return output.getvalue()
