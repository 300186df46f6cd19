"""Employee, attendance, holiday and organization settings models.

These tables back the SQL adapters of the directory ports. The payroll core
only reads them.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_core.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee with compensation and weekly schedule.

    ``compensation`` holds ``salary_type``, ``basic_salary`` and optional
    ``allowance``/holiday rate overrides. ``schedule`` holds ``weekly`` (one
    entry per weekday with ``in``, ``out``, ``is_workday``) and ``overrides``.
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    compensation: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    schedule: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'resigned', 'terminated')",
            name="employee_status_check",
        ),
    )

    # Relationships
    attendance: Mapped[list[Attendance]] = relationship(back_populates="employee")


class Attendance(Base, TimestampMixin):
    """One day of attendance; ``late`` in minutes, undertime/overtime in hours."""

    __tablename__ = "attendance_record"

    attendance_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="present")
    actual_in: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    actual_out: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    late: Mapped[int | None] = mapped_column(Integer, nullable=True)
    undertime: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    overtime: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    holiday_type: Mapped[str | None] = mapped_column(String, nullable=True)
    paid_leave: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="attendance_employee_date_unique"),
        CheckConstraint(
            "status IN ('present', 'half-day', 'absent', 'leave')",
            name="attendance_status_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="attendance")


class HolidayEntry(Base):
    """Organization holiday calendar entry."""

    __tablename__ = "holiday"

    holiday_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    holiday_type: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "date", name="holiday_org_date_unique"),
        CheckConstraint(
            "holiday_type IN ('regular', 'special')",
            name="holiday_type_check",
        ),
    )


class OrganizationSettings(Base):
    """Per-organization payroll policy; absent rows fall back to defaults."""

    __tablename__ = "organization_settings"

    organization_id: Mapped[UUID] = mapped_column(primary_key=True)
    daily_rate_includes_allowance: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    daily_rate_working_days_per_year: Mapped[int] = mapped_column(
        Integer, nullable=False, default=261
    )
    regular_holiday_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    special_holiday_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    overtime_regular_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    overtime_rest_day_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    regular_holiday_ot_base: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 4), nullable=True
    )
    special_holiday_ot_base: Mapped[Decimal | None] = mapped_column(
        Numeric(6, 4), nullable=True
    )
    holiday_ot_premium: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "daily_rate_working_days_per_year > 0",
            name="org_settings_working_days_check",
        ),
    )
