"""Data access for absence_entries."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.absences.models import AbsenceEntry
from timeoff.core_hr.models import Employee


class AbsenceRepository:

    @staticmethod
    async def delete_for_request(db: AsyncSession, request_id: uuid.UUID) -> int:
        result = await db.execute(
            delete(AbsenceEntry)
            .where(AbsenceEntry.source_request_id == request_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    @staticmethod
    async def for_request(db: AsyncSession, request_id: uuid.UUID) -> Sequence[AbsenceEntry]:
        result = await db.execute(
            select(AbsenceEntry)
            .where(AbsenceEntry.source_request_id == request_id)
            .order_by(AbsenceEntry.date)
        )
        return result.scalars().all()

    @staticmethod
    async def in_range(
        db: AsyncSession,
        from_date: date,
        to_date: date,
        *,
        department: Optional[str] = None,
        employee_ids: Optional[list[uuid.UUID]] = None,
    ) -> list[tuple[AbsenceEntry, Employee]]:
        query = (
            select(AbsenceEntry, Employee)
            .join(Employee, AbsenceEntry.employee_id == Employee.id)
            .where(
                AbsenceEntry.date >= from_date,
                AbsenceEntry.date <= to_date,
            )
            .order_by(AbsenceEntry.date, Employee.full_name)
        )
        if department is not None:
            query = query.where(Employee.department == department)
        if employee_ids is not None:
            query = query.where(AbsenceEntry.employee_id.in_(employee_ids))
        result = await db.execute(query)
        return [(entry, emp) for entry, emp in result.all()]
