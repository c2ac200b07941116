"""Validation of a candidate vacation date range.

Rules run in a fixed order; range, past-date and missing-balance errors
stop early, everything else is collected so the caller sees every problem
at once. Warnings never affect ``is_valid``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.calendars.service import DateLike, WorkingDayCalculator, as_date
from timeoff.common.constants import DATE_FORMAT, ZERO_DAYS
from timeoff.config import settings
from timeoff.vacations.balance import BalanceService
from timeoff.vacations.repository import RequestRepository
from timeoff.vacations.schemas import ValidationResult

logger = logging.getLogger(__name__)


def _days(value: Decimal) -> str:
    """Render a day count without trailing zeros (5.00 -> 5, 2.50 -> 2.5)."""
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal(1)))
    return str(normalized)


class RequestValidator:

    @staticmethod
    async def validate(
        db: AsyncSession,
        employee_id: uuid.UUID,
        start: DateLike,
        end: DateLike,
        exclude_request_id: Optional[uuid.UUID] = None,
        *,
        today: Optional[date] = None,
    ) -> ValidationResult:
        result = ValidationResult()
        first, last = as_date(start), as_date(end)
        today = today or date.today()

        # 1. Range
        if last < first:
            result.errors.append("End date must be on or after the start date.")
            return RequestValidator._finish(result, employee_id)

        # 2. Past dates
        earliest = today - timedelta(days=settings.PAST_REQUEST_GRACE_DAYS)
        if first < earliest:
            result.errors.append("Vacation cannot be requested for past dates.")
            return RequestValidator._finish(result, employee_id)

        # 3. Working days
        working_days = await WorkingDayCalculator.count_working_days(db, first, last)
        result.working_days = working_days
        if working_days == ZERO_DAYS:
            result.warnings.append(
                "The selected range contains no working days "
                "(weekends or holidays only)."
            )

        # 4. Balance
        balance = await BalanceService.get_or_create(db, employee_id, first.year)
        if balance is None:
            result.errors.append(
                f"No vacation balance is configured for {first.year}."
            )
            return RequestValidator._finish(result, employee_id)

        remaining = Decimal(balance.remaining_days)
        result.available_days = remaining

        # 5. Sufficiency
        if working_days > remaining:
            result.errors.append(
                f"Insufficient balance. Available: {_days(remaining)} days, "
                f"Requested: {_days(working_days)} days"
            )

        # 6. Overlap
        overlapping = await RequestRepository.find_overlapping(
            db, employee_id, first, last, exclude_request_id=exclude_request_id,
        )
        if overlapping:
            other = overlapping[0]
            result.errors.append(
                "Overlaps with another request from "
                f"{other.start_date.strftime(DATE_FORMAT)} to "
                f"{other.end_date.strftime(DATE_FORMAT)} "
                f"(Status: {other.status.value})"
            )

        # 7. Long requests
        if working_days > settings.LONG_REQUEST_WARNING_DAYS:
            result.warnings.append(
                f"More than {settings.LONG_REQUEST_WARNING_DAYS} consecutive "
                "working days requested. Consider splitting the request."
            )

        return RequestValidator._finish(result, employee_id)

    @staticmethod
    def _finish(result: ValidationResult, employee_id: uuid.UUID) -> ValidationResult:
        result.is_valid = not result.errors
        logger.debug(
            "Validation for employee %s: valid=%s errors=%d warnings=%d",
            employee_id, result.is_valid, len(result.errors), len(result.warnings),
        )
        return result
