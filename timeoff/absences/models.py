"""Absence calendar ORM model: one row per employee per absent working day."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeoff.common.constants import AbsenceType
from timeoff.database import Base


class AbsenceEntry(Base):
    """Derived from APPROVED vacation requests; never edited by hand."""

    __tablename__ = "absence_entries"
    __table_args__ = (
        sa.Index("ix_absence_entries_emp_date", "employee_id", "date"),
        sa.Index("ix_absence_entries_source", "source_request_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    absence_type: Mapped[str] = mapped_column(
        sa.String(20), default=AbsenceType.vacation.value, nullable=False,
    )
    source_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("vacation_requests.id", ondelete="CASCADE"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["timeoff.core_hr.models.Employee"] = relationship()

    def __repr__(self) -> str:
        return f"<AbsenceEntry {self.employee_id} {self.date} {self.absence_type}>"
