"""Read access to calendar_days."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.calendars.models import CalendarDay


class CalendarRepository:

    @staticmethod
    async def load_range(
        db: AsyncSession,
        from_date: date,
        to_date: date,
    ) -> dict[date, CalendarDay]:
        """Return calendar rows in [from_date, to_date] keyed by date (one query)."""
        if to_date < from_date:
            return {}
        result = await db.execute(
            select(CalendarDay).where(
                CalendarDay.date >= from_date,
                CalendarDay.date <= to_date,
            )
        )
        return {row.date: row for row in result.scalars().all()}
