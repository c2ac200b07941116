"""Working-day arithmetic over the holiday/weekend calendar.

Both the day counter and the per-day breakdown go through
:func:`is_non_working`, so for any range the number of expanded days not
flagged as holiday/weekend always equals the working-day count.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.calendars.models import CalendarDay
from timeoff.calendars.repository import CalendarRepository
from timeoff.common.constants import FULL_DAY, ZERO_DAYS
from timeoff.config import settings
from timeoff.vacations.models import VacationRequestDay

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    """Truncate a datetime to its date; dates pass through unchanged."""
    if isinstance(value, datetime):
        return value.date()
    return value


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_non_working(
    day: date,
    calendar: Mapping[date, CalendarDay],
    weekend_days: Optional[set[int]] = None,
) -> bool:
    """Calendar row wins; without one, the configured weekend days are off."""
    row = calendar.get(day)
    if row is not None:
        return not row.is_working_day
    weekend = settings.weekend_days if weekend_days is None else weekend_days
    return day.weekday() in weekend


def working_days_in(
    start: DateLike,
    end: DateLike,
    calendar: Mapping[date, CalendarDay],
) -> Decimal:
    """Count working days in [start, end] against an already-loaded calendar."""
    first, last = as_date(start), as_date(end)
    if last < first:
        return ZERO_DAYS

    weekend = settings.weekend_days
    total = ZERO_DAYS
    for day in iter_dates(first, last):
        if not is_non_working(day, calendar, weekend):
            total += FULL_DAY
    return total


# ═════════════════════════════════════════════════════════════════════
# WorkingDayCalculator
# ═════════════════════════════════════════════════════════════════════


class WorkingDayCalculator:
    """Counts working days between two dates (inclusive)."""

    @staticmethod
    async def count_working_days(
        db: AsyncSession,
        start: DateLike,
        end: DateLike,
    ) -> Decimal:
        first, last = as_date(start), as_date(end)
        if last < first:
            return ZERO_DAYS
        calendar = await CalendarRepository.load_range(db, first, last)
        return working_days_in(first, last, calendar)


# ═════════════════════════════════════════════════════════════════════
# RequestDayExpander
# ═════════════════════════════════════════════════════════════════════


class RequestDayExpander:
    """Builds the immutable per-day breakdown of a request."""

    @staticmethod
    async def expand(
        db: AsyncSession,
        request_id: Optional[uuid.UUID],
        start: DateLike,
        end: DateLike,
    ) -> list[VacationRequestDay]:
        """One unsaved row per calendar date in [start, end].

        ``request_id`` may be None when the rows are attached through the
        parent's ``days`` relationship before the first flush.
        """
        first, last = as_date(start), as_date(end)
        if last < first:
            return []

        calendar = await CalendarRepository.load_range(db, first, last)
        weekend = settings.weekend_days
        days: list[VacationRequestDay] = []
        for day in iter_dates(first, last):
            row = VacationRequestDay(
                date=day,
                day_fraction=FULL_DAY,
                is_holiday_or_weekend=is_non_working(day, calendar, weekend),
            )
            if request_id is not None:
                row.request_id = request_id
            days.append(row)
        return days
