"""Calendar reference data: one optional row per date."""

from __future__ import annotations

from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from timeoff.database import Base


class CalendarDay(Base):
    """Weekend/holiday flags for a date. Sparse: missing dates use the default rule."""

    __tablename__ = "calendar_days"

    date: Mapped[date] = mapped_column(sa.Date, primary_key=True)
    is_weekend: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.false(),
    )
    is_holiday: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.false(),
    )
    holiday_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    region: Mapped[Optional[str]] = mapped_column(sa.String(100))
    location: Mapped[Optional[str]] = mapped_column(sa.String(100))

    @property
    def is_working_day(self) -> bool:
        return not (self.is_weekend or self.is_holiday)

    def __repr__(self) -> str:
        flags = []
        if self.is_weekend:
            flags.append("weekend")
        if self.is_holiday:
            flags.append(f"holiday:{self.holiday_name or '?'}")
        return f"<CalendarDay {self.date.isoformat()} {','.join(flags) or 'working'}>"
