"""Payroll run API endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from payroll_core.api.dependencies import DbSession, RunService, Summaries
from payroll_core.api.schemas import (
    CostItemListResponse,
    CostItemResponse,
    ErrorResponse,
    NoteCreate,
    PayrollRunCreate,
    PayrollRunListResponse,
    PayrollRunResponse,
    PayrollRunUpdate,
    PayslipListResponse,
    PayslipResponse,
    StatusUpdate,
)
from payroll_core.calculators.types import Cutoff
from payroll_core.errors import NotFoundError
from payroll_core.models import PayrollRun
from payroll_core.services.ledger_service import (
    SqlCostLedger,
    cost_item_names,
    export_cost_items_csv,
)
from payroll_core.services.payroll_run_service import PayrollRunService

router = APIRouter(
    prefix="/organizations/{org_id}/payroll-runs",
    tags=["payroll-runs"],
)

OrgId = Annotated[UUID, Path()]
RunId = Annotated[UUID, Path()]


async def _get_run(service: PayrollRunService, org_id: UUID, run_id: UUID) -> PayrollRun:
    """Load a run, treating runs of other organizations as missing."""
    run = await service.get_payroll_run(run_id)
    if run.organization_id != org_id:
        raise NotFoundError("Payroll run", run_id)
    return run


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# Payroll Run CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_payroll_run(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Compute payslips for the given employees and create a draft run."""
    run_id = await service.create_payroll_run(
        organization_id=org_id,
        cutoff_start=payload.cutoff_start,
        cutoff_end=payload.cutoff_end,
        employee_ids=payload.employee_ids,
        deductions_enabled=payload.deductions_enabled,
        **payload.service_kwargs(),
    )
    await db.commit()
    run = await service.get_payroll_run(run_id)
    return PayrollRunResponse.model_validate(run)


@router.get("", response_model=PayrollRunListResponse)
async def list_payroll_runs(
    service: RunService,
    org_id: OrgId,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayrollRunListResponse:
    """List payroll runs of an organization, newest cutoff first."""
    runs = await service.list_payroll_runs(org_id, status_filter)
    return PayrollRunListResponse(
        items=[PayrollRunResponse.model_validate(r) for r in runs],
        total=len(runs),
    )


@router.get(
    "/{run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
) -> PayrollRunResponse:
    run = await _get_run(service, org_id, run_id)
    return PayrollRunResponse.model_validate(run)


@router.patch(
    "/{run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_payroll_run(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
    payload: PayrollRunUpdate,
) -> PayrollRunResponse:
    """Edit a draft run and recompute its payslips."""
    await _get_run(service, org_id, run_id)
    run = await service.update_payroll_run(
        run_id,
        cutoff_start=payload.cutoff_start,
        cutoff_end=payload.cutoff_end,
        employee_ids=payload.employee_ids,
        deductions_enabled=payload.deductions_enabled,
        **payload.service_kwargs(),
    )
    await db.commit()
    return PayrollRunResponse.model_validate(run)


@router.delete(
    "/{run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_payroll_run(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
    confirm: bool = False,
) -> Response:
    """Delete a run with its payslips and cost records; needs ``?confirm=true``."""
    await _get_run(service, org_id, run_id)
    await service.delete_payroll_run(run_id, confirm=confirm)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/{run_id}/status",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_payroll_run_status(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
    payload: StatusUpdate,
) -> PayrollRunResponse:
    """Finalize, mark paid, revert or archive a run."""
    await _get_run(service, org_id, run_id)
    run = await service.update_payroll_run_status(run_id, payload.status)
    await db.commit()
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/{run_id}/archive",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def archive_payroll_run(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
) -> PayrollRunResponse:
    await _get_run(service, org_id, run_id)
    run = await service.archive_payroll_run(run_id)
    await db.commit()
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/{run_id}/notes",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def add_payroll_run_note(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
    payload: NoteCreate,
) -> PayrollRunResponse:
    await _get_run(service, org_id, run_id)
    run = await service.add_payroll_run_note(run_id, payload.note, payload.author)
    await db.commit()
    return PayrollRunResponse.model_validate(run)


# ============================================================================
# Payslips, summary and exports
# ============================================================================


@router.get(
    "/{run_id}/payslips",
    response_model=PayslipListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_payslips(
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
) -> PayslipListResponse:
    await _get_run(service, org_id, run_id)
    payslips = await service.get_payslips(run_id)
    return PayslipListResponse(
        items=[PayslipResponse.model_validate(p) for p in payslips],
        total=len(payslips),
    )


@router.get("/{run_id}/summary", responses={404: {"model": ErrorResponse}})
async def get_payroll_run_summary(
    service: RunService,
    summaries: Summaries,
    org_id: OrgId,
    run_id: RunId,
) -> dict[str, Any]:
    """Per-day attendance grid with late, overtime and night-diff totals."""
    await _get_run(service, org_id, run_id)
    summary = await summaries.get_payroll_run_summary(run_id)
    return summary.to_dict()


@router.get("/{run_id}/export.csv", responses={404: {"model": ErrorResponse}})
async def export_payroll_run_summary(
    service: RunService,
    summaries: Summaries,
    org_id: OrgId,
    run_id: RunId,
) -> Response:
    run = await _get_run(service, org_id, run_id)
    content = await summaries.export_csv(run_id)
    filename = f"payroll-summary-{'-'.join(run.period.split())}.csv"
    return _csv_response(content, filename)


@router.get(
    "/{run_id}/cost-items",
    response_model=CostItemListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_cost_items(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
) -> CostItemListResponse:
    """Cost records currently held for the run's period."""
    run = await _get_run(service, org_id, run_id)
    names = cost_item_names(Cutoff(run.cutoff_start, run.cutoff_end))
    items = await SqlCostLedger(db).list_items(org_id, names)
    return CostItemListResponse(
        items=[CostItemResponse.model_validate(i) for i in items],
        total=len(items),
    )


@router.get("/{run_id}/cost-items.csv", responses={404: {"model": ErrorResponse}})
async def export_cost_items(
    db: DbSession,
    service: RunService,
    org_id: OrgId,
    run_id: RunId,
) -> Response:
    run = await _get_run(service, org_id, run_id)
    names = cost_item_names(Cutoff(run.cutoff_start, run.cutoff_end))
    items = await SqlCostLedger(db).list_items(org_id, names)
    return _csv_response(export_cost_items_csv(items), f"cost-items-{run_id}.csv")
