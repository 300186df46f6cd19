"""Payroll run and payslip models."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_core.models.base import Base, TimestampMixin

MONEY = Numeric(14, 2)


class PayrollRun(Base, TimestampMixin):
    """Payroll run header.

    Per-employee configuration is stored as JSON lists keyed by
    ``employee_id``: government deduction settings, manual deductions,
    incentives and deduction overrides.
    """

    __tablename__ = "payroll_run"

    payroll_run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    cutoff_start: Mapped[dt.date] = mapped_column(Date, nullable=False)
    cutoff_end: Mapped[dt.date] = mapped_column(Date, nullable=False)
    period: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    deductions_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    employee_ids: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    government_deduction_settings: Mapped[list[Any]] = mapped_column(
        nullable=False, default=list
    )
    manual_deductions: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    incentives: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    deduction_overrides: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    notes: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    processed_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'finalized', 'paid', 'archived')",
            name="payroll_run_status_check",
        ),
        CheckConstraint("cutoff_end >= cutoff_start", name="payroll_run_dates_check"),
    )

    # Relationships
    payslips: Mapped[list[Payslip]] = relationship(
        back_populates="payroll_run",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Payslip(Base, TimestampMixin):
    """Persisted payslip for one employee in one run."""

    __tablename__ = "payslip"

    payslip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_run_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_run.payroll_run_id", ondelete="CASCADE"),
        nullable=False,
    )
    organization_id: Mapped[UUID] = mapped_column(nullable=False)
    employee_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    period: Mapped[str] = mapped_column(String, nullable=False)
    basic_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    days_worked: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    absences: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    late_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    undertime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    holiday_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    rest_day_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    deductions: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    incentives: Mapped[list[Any]] = mapped_column(nullable=False, default=list)
    incentive_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    non_taxable_allowance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    truncated_deductions: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    __table_args__ = (
        UniqueConstraint("payroll_run_id", "employee_id", name="payslip_run_employee_unique"),
        CheckConstraint("net_pay >= 0", name="payslip_net_pay_check"),
    )

    # Relationships
    payroll_run: Mapped[PayrollRun] = relationship(back_populates="payslips")
