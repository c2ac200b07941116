"""Vacation ORM models: VacationPolicy, VacationBalance, VacationRequest, VacationRequestDay."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeoff.common.constants import AbsenceType, AccrualType, RequestStatus
from timeoff.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VacationPolicy(Base):
    __tablename__ = "vacation_policies"
    __table_args__ = (
        sa.UniqueConstraint("name", "year", name="uq_vacation_policy_name_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    accrual_type: Mapped[str] = mapped_column(
        sa.String(20), default=AccrualType.annual.value, nullable=False,
    )
    total_days_per_year: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False,
    )
    carry_over_max_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), default=Decimal("0"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    balances: Mapped[list[VacationBalance]] = relationship(back_populates="policy")

    def __repr__(self) -> str:
        return f"<VacationPolicy {self.name!r} {self.year}>"


class VacationBalance(Base):
    __tablename__ = "vacation_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", name="uq_vacation_balance_emp_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    policy_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("vacation_policies.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    allocated_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False
    )
    used_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), default=Decimal("0"), nullable=False
    )
    remaining_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    employee: Mapped["timeoff.core_hr.models.Employee"] = relationship()
    policy: Mapped[VacationPolicy] = relationship(back_populates="balances")

    def apply_used(self, used_days: Decimal) -> None:
        """Set used days and keep remaining = allocated - used."""
        self.used_days = used_days
        self.remaining_days = Decimal(self.allocated_days) - used_days
        self.updated_at = _utcnow()


class VacationRequest(Base):
    __tablename__ = "vacation_requests"
    __table_args__ = (
        sa.Index("ix_vacation_requests_emp_dates", "employee_id", "start_date", "end_date"),
        sa.CheckConstraint("end_date >= start_date", name="ck_vacation_request_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    requested_days: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), nullable=False)
    type: Mapped[str] = mapped_column(
        sa.String(20), default=AbsenceType.vacation.value, nullable=False,
    )
    status: Mapped[RequestStatus] = mapped_column(
        sa.Enum(
            RequestStatus,
            name="vacation_request_status",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=20,
        ),
        default=RequestStatus.draft,
        nullable=False,
    )
    approver_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id")
    )
    approver_comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    decision_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    employee: Mapped["timeoff.core_hr.models.Employee"] = relationship(
        foreign_keys=[employee_id]
    )
    approver: Mapped[Optional["timeoff.core_hr.models.Employee"]] = relationship(
        foreign_keys=[approver_employee_id]
    )
    days: Mapped[list[VacationRequestDay]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="VacationRequestDay.date",
    )

    def __repr__(self) -> str:
        return (
            f"<VacationRequest {self.start_date}..{self.end_date} "
            f"{self.status.value if self.status else '?'}>"
        )


class VacationRequestDay(Base):
    __tablename__ = "vacation_request_days"
    __table_args__ = (
        sa.UniqueConstraint("request_id", "date", name="uq_vacation_request_day"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("vacation_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    # Decimal so half days fit later; always 1.0 today
    day_fraction: Mapped[Decimal] = mapped_column(
        sa.Numeric(3, 2), default=Decimal("1.0"), nullable=False
    )
    is_holiday_or_weekend: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, nullable=False
    )

    # Relationships
    request: Mapped[VacationRequest] = relationship(back_populates="days")
