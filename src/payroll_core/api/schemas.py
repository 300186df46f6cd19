"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payroll_core.calculators.types import (
    Deduction,
    DeductionSetting,
    DeductionType,
    Frequency,
    GovernmentDeductionSetting,
    Incentive,
)


# ============================================================================
# Configuration schemas
# ============================================================================


class DeductionSettingSchema(BaseModel):
    """Enable/frequency toggle for one statutory deduction."""

    enabled: bool = True
    frequency: Frequency = Frequency.FULL

    def to_setting(self) -> DeductionSetting:
        return DeductionSetting(enabled=self.enabled, frequency=self.frequency)


class StatutoryToggles(BaseModel):
    """The four statutory deduction toggles."""

    sss: DeductionSettingSchema = Field(default_factory=DeductionSettingSchema)
    pagibig: DeductionSettingSchema = Field(default_factory=DeductionSettingSchema)
    philhealth: DeductionSettingSchema = Field(default_factory=DeductionSettingSchema)
    tax: DeductionSettingSchema = Field(default_factory=DeductionSettingSchema)

    def to_setting(self) -> GovernmentDeductionSetting:
        return GovernmentDeductionSetting(
            sss=self.sss.to_setting(),
            pagibig=self.pagibig.to_setting(),
            philhealth=self.philhealth.to_setting(),
            tax=self.tax.to_setting(),
        )


class GovernmentDeductionSettingSchema(StatutoryToggles):
    """Statutory deduction policy for one employee."""

    employee_id: UUID


class DeductionSchema(BaseModel):
    name: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    type: DeductionType = DeductionType.CUSTOM

    def to_deduction(self) -> Deduction:
        return Deduction(name=self.name, amount=self.amount, type=self.type)


class IncentiveSchema(BaseModel):
    name: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    type: str = "incentive"

    def to_incentive(self) -> Incentive:
        return Incentive(name=self.name, amount=self.amount, type=self.type)


class EmployeeDeductions(BaseModel):
    employee_id: UUID
    deductions: list[DeductionSchema] = Field(default_factory=list)


class EmployeeIncentives(BaseModel):
    employee_id: UUID
    incentives: list[IncentiveSchema] = Field(default_factory=list)


class EmployeeOverrides(BaseModel):
    """Deduction line amounts by name, replacing the computed amounts."""

    employee_id: UUID
    overrides: dict[str, Decimal] = Field(default_factory=dict)


class RunConfigurationFields(BaseModel):
    """Per-employee configuration shared by create and update requests."""

    government_deduction_settings: list[GovernmentDeductionSettingSchema] | None = None
    manual_deductions: list[EmployeeDeductions] | None = None
    incentives: list[EmployeeIncentives] | None = None
    deduction_overrides: list[EmployeeOverrides] | None = None

    def service_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the run service; None means not given."""
        kwargs: dict[str, Any] = {}
        if self.government_deduction_settings is not None:
            kwargs["government_deduction_settings"] = {
                s.employee_id: s.to_setting() for s in self.government_deduction_settings
            }
        if self.manual_deductions is not None:
            kwargs["manual_deductions"] = {
                m.employee_id: [d.to_deduction() for d in m.deductions]
                for m in self.manual_deductions
            }
        if self.incentives is not None:
            kwargs["incentives"] = {
                i.employee_id: [x.to_incentive() for x in i.incentives]
                for i in self.incentives
            }
        if self.deduction_overrides is not None:
            kwargs["deduction_overrides"] = {
                o.employee_id: dict(o.overrides) for o in self.deduction_overrides
            }
        return kwargs


# ============================================================================
# Payroll Run schemas
# ============================================================================


class PayrollRunCreate(RunConfigurationFields):
    """Schema for creating a new payroll run."""

    cutoff_start: date
    cutoff_end: date
    employee_ids: list[UUID]
    deductions_enabled: bool = True


class PayrollRunUpdate(RunConfigurationFields):
    """Schema for editing a draft payroll run; omitted fields keep their values."""

    cutoff_start: date | None = None
    cutoff_end: date | None = None
    employee_ids: list[UUID] | None = None
    deductions_enabled: bool | None = None


class StatusUpdate(BaseModel):
    status: str


class NoteCreate(BaseModel):
    note: str = Field(min_length=1)
    author: str | None = None


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_run_id: UUID
    organization_id: UUID
    cutoff_start: date
    cutoff_end: date
    period: str
    status: str
    deductions_enabled: bool
    employee_ids: list[UUID]
    government_deduction_settings: list[dict[str, Any]]
    manual_deductions: list[dict[str, Any]]
    incentives: list[dict[str, Any]]
    deduction_overrides: list[dict[str, Any]]
    notes: list[dict[str, Any]]
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PayrollRunListResponse(BaseModel):
    items: list[PayrollRunResponse]
    total: int


# ============================================================================
# Payslip schemas
# ============================================================================


class DeductionLine(BaseModel):
    name: str
    amount: Decimal
    type: str


class IncentiveLine(BaseModel):
    name: str
    amount: Decimal
    type: str


class PayslipResponse(BaseModel):
    """Schema for a persisted payslip."""

    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    payroll_run_id: UUID
    employee_id: UUID
    period: str
    basic_pay: Decimal
    days_worked: Decimal
    absences: int
    late_hours: Decimal
    undertime_hours: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    rest_day_pay: Decimal
    deductions: list[DeductionLine]
    incentives: list[IncentiveLine]
    incentive_total: Decimal
    non_taxable_allowance: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    truncated_deductions: Decimal
    net_pay: Decimal


class PayslipListResponse(BaseModel):
    items: list[PayslipResponse]
    total: int


# ============================================================================
# Preview schemas
# ============================================================================


class PreviewRequest(BaseModel):
    """Schema for previewing one employee's payslip."""

    cutoff_start: date
    cutoff_end: date
    deductions_enabled: bool = True
    government_settings: StatutoryToggles | None = None
    manual_deductions: list[DeductionSchema] = Field(default_factory=list)
    incentives: list[IncentiveSchema] = Field(default_factory=list)
    deduction_overrides: dict[str, Decimal] = Field(default_factory=dict)


class DeductionBreakdown(BaseModel):
    sss: Decimal
    philhealth: Decimal
    pagibig: Decimal
    withholding_tax: Decimal
    custom: Decimal


class PreviewResponse(BaseModel):
    """Schema for a payslip preview."""

    employee_id: UUID
    basic_pay: Decimal
    days_worked: Decimal
    absences: int
    late_hours: Decimal
    undertime_hours: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    holiday_pay: Decimal
    rest_day_pay: Decimal
    gross_pay: Decimal
    incentive_total: Decimal
    non_taxable_allowance: Decimal
    deductions: DeductionBreakdown
    deduction_lines: list[DeductionLine]
    total_deductions: Decimal
    truncated_deductions: Decimal
    net_pay: Decimal


# ============================================================================
# Cost ledger schemas
# ============================================================================


class CostItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cost_item_id: UUID
    payroll_run_id: UUID | None = None
    category: str
    name: str
    description: str | None = None
    amount: Decimal
    amount_paid: Decimal
    status: str
    due_date: date | None = None
    notes: str | None = None


class CostItemListResponse(BaseModel):
    items: list[CostItemResponse]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
