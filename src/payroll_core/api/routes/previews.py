"""Single-employee payslip preview."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from payroll_core.api.dependencies import RunService
from payroll_core.api.schemas import ErrorResponse, PreviewRequest, PreviewResponse

router = APIRouter(prefix="/organizations/{org_id}/employees", tags=["previews"])


@router.post(
    "/{employee_id}/payroll-preview",
    response_model=PreviewResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def preview_employee_payroll(
    service: RunService,
    org_id: Annotated[UUID, Path()],
    employee_id: Annotated[UUID, Path()],
    payload: PreviewRequest,
) -> PreviewResponse:
    """Compute one employee's payslip for a cutoff without saving it."""
    preview = await service.compute_employee_payroll(
        employee_id,
        payload.cutoff_start,
        payload.cutoff_end,
        deductions_enabled=payload.deductions_enabled,
        government_settings=(
            payload.government_settings.to_setting()
            if payload.government_settings is not None
            else None
        ),
        manual_deductions=[d.to_deduction() for d in payload.manual_deductions],
        incentives=[i.to_incentive() for i in payload.incentives],
        deduction_overrides=payload.deduction_overrides,
        organization_id=org_id,
    )
    return PreviewResponse.model_validate(preview)
