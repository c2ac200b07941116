"""Absence calendar synchronisation and lookup."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.absences.models import AbsenceEntry
from timeoff.absences.repository import AbsenceRepository
from timeoff.common.constants import RequestStatus
from timeoff.common.exceptions import NotFoundException
from timeoff.vacations.repository import RequestRepository
from timeoff.vacations.schemas import AbsenceEntryOut

logger = logging.getLogger(__name__)


class AbsenceSynchronizer:
    """Regenerates the absence rows owned by a request."""

    @staticmethod
    async def sync(db: AsyncSession, request_id: uuid.UUID) -> int:
        """Replace the request's absence rows; returns how many now exist.

        Rows exist only while the request is APPROVED: one per expanded day
        that is not a holiday or weekend. Running it twice is a no-op.
        """
        request = await RequestRepository.get_with_days(db, request_id)
        if request is None:
            raise NotFoundException("VacationRequest", str(request_id))

        removed = await AbsenceRepository.delete_for_request(db, request_id)

        created = 0
        if request.status == RequestStatus.approved:
            for day in request.days:
                if day.is_holiday_or_weekend:
                    continue
                db.add(
                    AbsenceEntry(
                        employee_id=request.employee_id,
                        date=day.date,
                        absence_type=request.type,
                        source_request_id=request.id,
                    )
                )
                created += 1

        await db.flush()
        logger.debug(
            "Absence sync for request %s (%s): removed=%d created=%d",
            request_id, request.status.value, removed, created,
        )
        return created

    @staticmethod
    async def get_absences(
        db: AsyncSession,
        from_date: date,
        to_date: date,
        *,
        department: Optional[str] = None,
        employee_ids: Optional[list[uuid.UUID]] = None,
    ) -> list[AbsenceEntryOut]:
        """Team absence calendar for [from_date, to_date]."""
        if to_date < from_date:
            return []

        rows = await AbsenceRepository.in_range(
            db, from_date, to_date,
            department=department, employee_ids=employee_ids,
        )
        return [
            AbsenceEntryOut(
                employee_id=entry.employee_id,
                date=entry.date,
                absence_type=entry.absence_type,
                source_request_id=entry.source_request_id,
                employee_name=emp.full_name,
                department=emp.department,
            )
            for entry, emp in rows
        ]
