"""Payroll run service - orchestrates computation and run lifecycle."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_core.calculators.compositor import CompositionInput, PayslipCompositor
from payroll_core.calculators.statutory import PhilippineContributionTable, StatutoryTables
from payroll_core.calculators.types import (
    Cutoff,
    Deduction,
    GovernmentDeductionSetting,
    Incentive,
    PayslipResult,
)
from payroll_core.errors import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from payroll_core.models import PayrollRun, Payslip
from payroll_core.services.directory import (
    SqlAttendanceStore,
    SqlEmployeeDirectory,
    SqlHolidayCalendar,
    SqlOrganizationSettings,
)
from payroll_core.services.ledger_service import LedgerService, SqlCostLedger
from payroll_core.services.ports import (
    AttendanceStore,
    CostLedger,
    EmployeeDirectory,
    HolidayCalendar,
    OrganizationSettings,
)
from payroll_core.services.state_machine import PayrollRunStateMachine, PayrollRunStatus
from payroll_core.services.summary_service import RunSummary, SummaryService

logger = logging.getLogger(__name__)


@dataclass
class RunConfiguration:
    """Deduction and incentive configuration of a run, keyed by employee."""

    deductions_enabled: bool = True
    government_settings: dict[UUID, GovernmentDeductionSetting] = field(default_factory=dict)
    manual_deductions: dict[UUID, list[Deduction]] = field(default_factory=dict)
    incentives: dict[UUID, list[Incentive]] = field(default_factory=dict)
    deduction_overrides: dict[UUID, dict[str, Decimal]] = field(default_factory=dict)

    def for_employee(self, employee_id: UUID) -> dict[str, Any]:
        """Keyword arguments for ``CompositionInput``."""
        return {
            "government_settings": self.government_settings.get(
                employee_id, GovernmentDeductionSetting()
            ),
            "manual_deductions": tuple(self.manual_deductions.get(employee_id, ())),
            "incentives": tuple(self.incentives.get(employee_id, ())),
            "deductions_enabled": self.deductions_enabled,
            "deduction_overrides": dict(self.deduction_overrides.get(employee_id, {})),
        }

    def apply_to(self, run: PayrollRun) -> None:
        run.deductions_enabled = self.deductions_enabled
        run.government_deduction_settings = [
            {"employee_id": str(eid), **setting.to_dict()}
            for eid, setting in self.government_settings.items()
        ]
        run.manual_deductions = [
            {"employee_id": str(eid), "deductions": [d.to_dict() for d in items]}
            for eid, items in self.manual_deductions.items()
        ]
        run.incentives = [
            {"employee_id": str(eid), "incentives": [i.to_dict() for i in items]}
            for eid, items in self.incentives.items()
        ]
        run.deduction_overrides = [
            {
                "employee_id": str(eid),
                "overrides": {name: str(amount) for name, amount in overrides.items()},
            }
            for eid, overrides in self.deduction_overrides.items()
        ]

    @classmethod
    def from_run(cls, run: PayrollRun) -> RunConfiguration:
        return cls(
            deductions_enabled=run.deductions_enabled,
            government_settings={
                UUID(item["employee_id"]): GovernmentDeductionSetting.from_dict(item)
                for item in run.government_deduction_settings or []
            },
            manual_deductions={
                UUID(item["employee_id"]): [Deduction.from_dict(d) for d in item["deductions"]]
                for item in run.manual_deductions or []
            },
            incentives={
                UUID(item["employee_id"]): [Incentive.from_dict(i) for i in item["incentives"]]
                for item in run.incentives or []
            },
            deduction_overrides={
                UUID(item["employee_id"]): {
                    name: Decimal(str(amount)) for name, amount in item["overrides"].items()
                }
                for item in run.deduction_overrides or []
            },
        )


def preview_from_result(result: PayslipResult) -> dict[str, Any]:
    """The shape returned by ``compute_employee_payroll``."""
    return {
        "employee_id": result.employee_id,
        "basic_pay": result.basic_pay,
        "days_worked": result.days_worked,
        "absences": result.absences,
        "late_hours": result.late_hours,
        "undertime_hours": result.undertime_hours,
        "overtime_hours": result.overtime_hours,
        "overtime_pay": result.overtime_pay,
        "holiday_pay": result.holiday_pay,
        "rest_day_pay": result.rest_day_pay,
        "gross_pay": result.gross_pay,
        "incentive_total": result.incentive_total,
        "non_taxable_allowance": result.non_taxable_allowance,
        "deductions": result.deduction_breakdown(),
        "deduction_lines": [d.to_dict() for d in result.deductions],
        "total_deductions": result.total_deductions,
        "truncated_deductions": result.truncated_deductions,
        "net_pay": result.net_pay,
    }


class PayrollRunService:
    """Service for managing payroll run lifecycle.

    Operations:
    - compute_employee_payroll: preview one employee's payslip
    - create_payroll_run / update_payroll_run: compose and persist payslips
    - update_payroll_run_status: finalize, mark paid, revert
    - archive_payroll_run: terminal state, removes cost records
    - delete_payroll_run: removes run, payslips and cost records

    Preview and run creation share the same composition path. Status
    changes are compare-and-swap updates on the current status. The service
    flushes; committing is left to the caller.
    """

    def __init__(
        self,
        session: AsyncSession,
        employees: EmployeeDirectory | None = None,
        attendance: AttendanceStore | None = None,
        holidays: HolidayCalendar | None = None,
        organization_settings: OrganizationSettings | None = None,
        ledger: CostLedger | None = None,
        tables: StatutoryTables | None = None,
    ):
        self.session = session
        self.employees = employees or SqlEmployeeDirectory(session)
        self.attendance = attendance or SqlAttendanceStore(session)
        self.holidays = holidays or SqlHolidayCalendar(session)
        self.organization_settings = organization_settings or SqlOrganizationSettings(session)
        self.tables = tables or PhilippineContributionTable()
        self.ledger_service = LedgerService(ledger or SqlCostLedger(session), self.tables)

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    async def compute_employee_payroll(
        self,
        employee_id: UUID,
        cutoff_start: date,
        cutoff_end: date,
        deductions_enabled: bool = True,
        government_settings: GovernmentDeductionSetting | None = None,
        manual_deductions: Sequence[Deduction] = (),
        incentives: Sequence[Incentive] = (),
        deduction_overrides: Mapping[str, Decimal] | None = None,
        organization_id: UUID | None = None,
    ) -> dict[str, Any]:
        """Preview one employee's payslip without persisting anything.

        When ``organization_id`` is given, employees of other organizations
        are reported as not found.
        """
        cutoff = self._cutoff(cutoff_start, cutoff_end)
        profiles = await self.employees.get_employees([employee_id])
        profile = profiles.get(employee_id)
        if profile is None or (
            organization_id is not None
            and profile.organization_id not in (None, organization_id)
        ):
            raise NotFoundError("Employee", employee_id)

        config = RunConfiguration(deductions_enabled=deductions_enabled)
        if government_settings is not None:
            config.government_settings[employee_id] = government_settings
        config.manual_deductions[employee_id] = list(manual_deductions)
        config.incentives[employee_id] = list(incentives)
        if deduction_overrides:
            config.deduction_overrides[employee_id] = dict(deduction_overrides)

        results = await self._compose(profile.organization_id, cutoff, [employee_id], config)
        return preview_from_result(results[0])

    async def _compose(
        self,
        organization_id: UUID | None,
        cutoff: Cutoff,
        employee_ids: Sequence[UUID],
        config: RunConfiguration,
    ) -> list[PayslipResult]:
        """Load inputs and compose every payslip; any failure aborts all."""
        profiles = await self.employees.get_employees(employee_ids)
        for employee_id in employee_ids:
            profile = profiles.get(employee_id)
            if profile is None:
                raise NotFoundError("Employee", employee_id)
            if organization_id is not None and profile.organization_id not in (
                None,
                organization_id,
            ):
                raise ValidationError(
                    f"Employee {employee_id} does not belong to organization {organization_id}",
                    field="employee_ids",
                )

        if organization_id is not None:
            holidays = tuple(
                await self.holidays.get_holidays(organization_id, cutoff.start, cutoff.end)
            )
            settings = await self.organization_settings.get_settings(organization_id)
        else:
            holidays = ()
            settings = None

        inputs = []
        for employee_id in employee_ids:
            records = await self.attendance.get_records(employee_id, cutoff.start, cutoff.end)
            inputs.append(
                CompositionInput(
                    employee=profiles[employee_id],
                    cutoff=cutoff,
                    records=tuple(records),
                    holidays=holidays,
                    **config.for_employee(employee_id),
                )
            )

        compositor = PayslipCompositor(settings, self.tables)
        try:
            return list(
                await asyncio.gather(
                    *(asyncio.to_thread(compositor.compose, item) for item in inputs)
                )
            )
        except Exception:
            logger.warning(
                "Payslip composition failed for cutoff %s (%d employee(s))",
                cutoff.label(),
                len(inputs),
            )
            raise

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    async def create_payroll_run(
        self,
        organization_id: UUID,
        cutoff_start: date,
        cutoff_end: date,
        employee_ids: Iterable[UUID],
        deductions_enabled: bool = True,
        government_deduction_settings: Mapping[UUID, GovernmentDeductionSetting] | None = None,
        manual_deductions: Mapping[UUID, Sequence[Deduction]] | None = None,
        incentives: Mapping[UUID, Sequence[Incentive]] | None = None,
        deduction_overrides: Mapping[UUID, Mapping[str, Decimal]] | None = None,
    ) -> UUID:
        """Compose payslips for every employee and persist the run in draft."""
        cutoff = self._cutoff(cutoff_start, cutoff_end)
        ids = self._employee_ids(employee_ids)
        config = RunConfiguration(deductions_enabled=deductions_enabled)
        self._merge_config(
            config,
            government_deduction_settings,
            manual_deductions,
            incentives,
            deduction_overrides,
        )

        results = await self._compose(organization_id, cutoff, ids, config)

        run = PayrollRun(
            organization_id=organization_id,
            cutoff_start=cutoff.start,
            cutoff_end=cutoff.end,
            period=cutoff.label(),
            status=PayrollRunStatus.DRAFT.value,
            employee_ids=[str(i) for i in ids],
            notes=[],
            processed_at=None,
            updated_at=None,
        )
        config.apply_to(run)
        self.session.add(run)
        await self.session.flush()

        for result in results:
            self.session.add(self._payslip_from_result(run, result))
        await self.session.flush()

        logger.info(
            "Created payroll run %s for %s with %d payslip(s)",
            run.payroll_run_id,
            run.period,
            len(results),
        )
        return run.payroll_run_id

    async def update_payroll_run(
        self,
        payroll_run_id: UUID,
        cutoff_start: date | None = None,
        cutoff_end: date | None = None,
        employee_ids: Iterable[UUID] | None = None,
        deductions_enabled: bool | None = None,
        government_deduction_settings: Mapping[UUID, GovernmentDeductionSetting] | None = None,
        manual_deductions: Mapping[UUID, Sequence[Deduction]] | None = None,
        incentives: Mapping[UUID, Sequence[Incentive]] | None = None,
        deduction_overrides: Mapping[UUID, Mapping[str, Decimal]] | None = None,
    ) -> PayrollRun:
        """Replace dates, employees or configuration of a draft run and recompute.

        Fields left as None keep their stored values.
        """
        run = await self.get_payroll_run(payroll_run_id)
        if not PayrollRunStateMachine.can_edit(run.status):
            raise InvalidStateError(payroll_run_id, run.status, "edit")

        cutoff = self._cutoff(cutoff_start or run.cutoff_start, cutoff_end or run.cutoff_end)
        if employee_ids is not None:
            ids = self._employee_ids(employee_ids)
        else:
            ids = [UUID(i) for i in run.employee_ids]

        config = RunConfiguration.from_run(run)
        if deductions_enabled is not None:
            config.deductions_enabled = deductions_enabled
        self._merge_config(
            config,
            government_deduction_settings,
            manual_deductions,
            incentives,
            deduction_overrides,
        )

        results = await self._compose(run.organization_id, cutoff, ids, config)

        now = datetime.now(timezone.utc)
        await self._guard_draft(run, now)
        await self.session.execute(
            delete(Payslip).where(Payslip.payroll_run_id == payroll_run_id)
        )
        run.cutoff_start = cutoff.start
        run.cutoff_end = cutoff.end
        run.period = cutoff.label()
        run.employee_ids = [str(i) for i in ids]
        config.apply_to(run)
        run.updated_at = now
        for result in results:
            self.session.add(self._payslip_from_result(run, result))
        await self.session.flush()

        logger.info(
            "Updated payroll run %s (%d payslip(s) recomputed)", payroll_run_id, len(results)
        )
        return run

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def update_payroll_run_status(
        self,
        payroll_run_id: UUID,
        target_status: str,
    ) -> PayrollRun:
        """Move a run along its lifecycle, applying cost ledger side effects.

        - draft → finalized: write cost records, set processed_at
        - finalized → paid: mark cost records paid
        - paid → finalized: mark cost records unpaid
        - finalized → draft: delete cost records, clear processed_at
        - finalized|paid → archived: see ``archive_payroll_run``
        """
        run = await self.get_payroll_run(payroll_run_id)
        from_status = run.status
        try:
            target = PayrollRunStatus(target_status)
        except ValueError:
            raise InvalidTransitionError(
                from_status, str(target_status), "unknown status", payroll_run_id
            ) from None

        if target == PayrollRunStatus.ARCHIVED:
            return await self.archive_payroll_run(payroll_run_id)

        PayrollRunStateMachine.validate_transition(from_status, target.value, payroll_run_id)

        values: dict[str, Any] = {}
        if target == PayrollRunStatus.FINALIZED and from_status == PayrollRunStatus.DRAFT:
            values["processed_at"] = datetime.now(timezone.utc)
        elif target == PayrollRunStatus.DRAFT:
            values["processed_at"] = None

        await self._compare_and_swap(run, target, **values)

        if from_status == PayrollRunStatus.DRAFT:
            await self._record_costs(run)
        elif target == PayrollRunStatus.PAID:
            await self.ledger_service.set_paid(run, True)
        elif from_status == PayrollRunStatus.PAID:
            await self.ledger_service.set_paid(run, False)
        elif target == PayrollRunStatus.DRAFT:
            await self.ledger_service.remove(run)

        logger.info(
            "Payroll run %s moved from %s to %s", payroll_run_id, from_status, target.value
        )
        return run

    async def archive_payroll_run(self, payroll_run_id: UUID) -> PayrollRun:
        """Archive a finalized or paid run and delete its cost records.

        Payslips stay readable.
        """
        run = await self.get_payroll_run(payroll_run_id)
        from_status = run.status
        PayrollRunStateMachine.validate_transition(
            from_status, PayrollRunStatus.ARCHIVED.value, payroll_run_id
        )
        await self._compare_and_swap(run, PayrollRunStatus.ARCHIVED)
        removed = 0
        if PayrollRunStateMachine.has_cost_records(from_status):
            removed = await self.ledger_service.remove(run)
        logger.info(
            "Archived payroll run %s from %s (%d cost item(s) removed)",
            payroll_run_id,
            from_status,
            removed,
        )
        return run

    async def delete_payroll_run(self, payroll_run_id: UUID, confirm: bool = False) -> None:
        """Irreversibly delete a run, its payslips and its cost records."""
        if not confirm:
            raise ValidationError(
                "Deleting a payroll run is irreversible and requires confirm=True",
                field="confirm",
                payroll_run_id=payroll_run_id,
            )
        run = await self.get_payroll_run(payroll_run_id)
        status = run.status
        if not PayrollRunStateMachine.can_delete(status):
            raise InvalidStateError(payroll_run_id, status, "delete")

        if PayrollRunStateMachine.has_cost_records(status):
            await self.ledger_service.remove(run)
        await self.session.execute(
            delete(Payslip).where(Payslip.payroll_run_id == payroll_run_id)
        )
        result = await self.session.execute(
            delete(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == payroll_run_id,
                PayrollRun.status == status,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError(payroll_run_id, status, "delete")
        self.session.expunge(run)
        logger.warning("Deleted payroll run %s (was %s)", payroll_run_id, status)

    async def add_payroll_run_note(
        self,
        payroll_run_id: UUID,
        note: str,
        author: str | None = None,
    ) -> PayrollRun:
        """Append a note to a run in any status."""
        if not note or not note.strip():
            raise ValidationError("Note must not be empty", field="note")
        run = await self.get_payroll_run(payroll_run_id)
        entry = {
            "note": note.strip(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        if author:
            entry["author"] = author
        run.notes = [*(run.notes or []), entry]
        await self.session.flush()
        return run

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_payroll_run(self, payroll_run_id: UUID) -> PayrollRun:
        run = await self.session.get(PayrollRun, payroll_run_id)
        if run is None:
            raise NotFoundError("Payroll run", payroll_run_id)
        return run

    async def list_payroll_runs(
        self, organization_id: UUID, status: str | None = None
    ) -> list[PayrollRun]:
        query = select(PayrollRun).where(PayrollRun.organization_id == organization_id)
        if status:
            query = query.where(PayrollRun.status == status)
        result = await self.session.execute(
            query.order_by(PayrollRun.cutoff_start.desc(), PayrollRun.created_at.desc())
        )
        return list(result.scalars())

    async def get_payslips(self, payroll_run_id: UUID) -> list[Payslip]:
        await self.get_payroll_run(payroll_run_id)
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.payroll_run_id == payroll_run_id)
            .order_by(Payslip.created_at, Payslip.employee_id)
        )
        return list(result.scalars())

    async def get_payroll_run_summary(self, payroll_run_id: UUID) -> RunSummary:
        summaries = SummaryService(self.session, self.employees, self.attendance, self.holidays)
        return await summaries.get_payroll_run_summary(payroll_run_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _compare_and_swap(
        self, run: PayrollRun, target: PayrollRunStatus, **values: Any
    ) -> None:
        """Move ``run`` to ``target`` only if its status is unchanged in storage."""
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == run.payroll_run_id,
                PayrollRun.status == run.status,
            )
            .values(status=target.value, updated_at=datetime.now(timezone.utc), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError(
                run.status,
                target.value,
                "status changed concurrently",
                run.payroll_run_id,
            )
        await self.session.refresh(run)

    async def _guard_draft(self, run: PayrollRun, now: datetime) -> None:
        """Touch ``run`` only if it is still a draft in storage."""
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == run.payroll_run_id,
                PayrollRun.status == PayrollRunStatus.DRAFT.value,
            )
            .values(updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = await self.session.scalar(
                select(PayrollRun.status).where(
                    PayrollRun.payroll_run_id == run.payroll_run_id
                )
            )
            raise InvalidStateError(run.payroll_run_id, current or run.status, "edit")

    async def _record_costs(self, run: PayrollRun) -> None:
        payslips = await self.get_payslips(run.payroll_run_id)
        profiles = await self.employees.get_employees(p.employee_id for p in payslips)
        settings = await self.organization_settings.get_settings(run.organization_id)
        await self.ledger_service.record_finalized(run, payslips, profiles, settings)

    @staticmethod
    def _cutoff(cutoff_start: date, cutoff_end: date) -> Cutoff:
        if cutoff_end < cutoff_start:
            raise ValidationError(
                "Cutoff end must not be before cutoff start",
                field="cutoff_end",
            )
        return Cutoff(cutoff_start, cutoff_end)

    @staticmethod
    def _employee_ids(employee_ids: Iterable[UUID]) -> list[UUID]:
        ids = list(dict.fromkeys(employee_ids))
        if not ids:
            raise ValidationError("At least one employee is required", field="employee_ids")
        return ids

    @staticmethod
    def _merge_config(
        config: RunConfiguration,
        government_deduction_settings: Mapping[UUID, GovernmentDeductionSetting] | None,
        manual_deductions: Mapping[UUID, Sequence[Deduction]] | None,
        incentives: Mapping[UUID, Sequence[Incentive]] | None,
        deduction_overrides: Mapping[UUID, Mapping[str, Decimal]] | None,
    ) -> None:
        """Replace each configuration part that is given."""
        if government_deduction_settings is not None:
            config.government_settings = dict(government_deduction_settings)
        if manual_deductions is not None:
            config.manual_deductions = {k: list(v) for k, v in manual_deductions.items()}
        if incentives is not None:
            config.incentives = {k: list(v) for k, v in incentives.items()}
        if deduction_overrides is not None:
            config.deduction_overrides = {k: dict(v) for k, v in deduction_overrides.items()}

    @staticmethod
    def _payslip_from_result(run: PayrollRun, result: PayslipResult) -> Payslip:
        return Payslip(
            payroll_run_id=run.payroll_run_id,
            organization_id=run.organization_id,
            employee_id=result.employee_id,
            period=run.period,
            basic_pay=result.basic_pay,
            days_worked=result.days_worked,
            absences=result.absences,
            late_hours=result.late_hours,
            undertime_hours=result.undertime_hours,
            overtime_hours=result.overtime_hours,
            overtime_pay=result.overtime_pay,
            holiday_pay=result.holiday_pay,
            rest_day_pay=result.rest_day_pay,
            deductions=[d.to_dict() for d in result.deductions],
            incentives=[i.to_dict() for i in result.incentives],
            incentive_total=result.incentive_total,
            non_taxable_allowance=result.non_taxable_allowance,
            gross_pay=result.gross_pay,
            total_deductions=result.total_deductions,
            truncated_deductions=result.truncated_deductions,
            net_pay=result.net_pay,
        )
