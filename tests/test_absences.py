"""Absence calendar tests — synchronisation from requests and team lookups."""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.absences.models import AbsenceEntry
from timeoff.absences.service import AbsenceSynchronizer
from timeoff.common.constants import RequestStatus
from timeoff.common.exceptions import NotFoundException
from timeoff.vacations.lifecycle import RequestLifecycle
from timeoff.vacations.repository import PolicyRepository, RequestRepository
from tests.conftest import (
    SUNDAY,
    TODAY,
    WEEK_END,
    WEEK_START,
    _seed_calendar_day,
    _seed_employee,
    _seed_policy,
)


async def _approved_request(
    db: AsyncSession,
    *,
    department: str = "Engineering",
    start: date = WEEK_START,
    end: date = WEEK_END,
    full_name: str = "Employee",
):
    manager = await _seed_employee(db, full_name=f"{full_name} Manager")
    employee = await _seed_employee(
        db, full_name=full_name, department=department, manager_id=manager.id,
    )
    if not await PolicyRepository.for_year(db, 2027):
        await _seed_policy(db, year=2027)
    created = await RequestLifecycle.create(db, employee.id, start, end, today=TODAY)
    assert created.success, created.errors
    request_id = created.request.id
    await RequestLifecycle.submit(db, request_id, employee.id, today=TODAY)
    approved = await RequestLifecycle.approve(db, request_id, manager.id)
    assert approved.success
    return employee, request_id


async def _count(db: AsyncSession, request_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(AbsenceEntry).where(
            AbsenceEntry.source_request_id == request_id,
        )
    )
    return result.scalar_one()


class TestSync:

    async def test_holidays_and_weekends_skipped(self, db: AsyncSession):
        await _seed_calendar_day(db, date(2027, 3, 3), is_holiday=True, holiday_name="Fiesta")

        _, request_id = await _approved_request(db, end=SUNDAY)

        result = await db.execute(
            select(AbsenceEntry.date)
            .where(AbsenceEntry.source_request_id == request_id)
            .order_by(AbsenceEntry.date)
        )
        assert [row[0] for row in result.all()] == [
            date(2027, 3, 1), date(2027, 3, 2), date(2027, 3, 4), date(2027, 3, 5),
        ]

    async def test_idempotent(self, db: AsyncSession):
        _, request_id = await _approved_request(db)

        assert await AbsenceSynchronizer.sync(db, request_id) == 5
        assert await AbsenceSynchronizer.sync(db, request_id) == 5
        assert await _count(db, request_id) == 5

    async def test_non_approved_request_has_no_rows(self, db: AsyncSession):
        _, request_id = await _approved_request(db)

        request = await RequestRepository.get(db, request_id)
        request.status = RequestStatus.cancelled
        await db.flush()

        assert await AbsenceSynchronizer.sync(db, request_id) == 0
        assert await _count(db, request_id) == 0

    async def test_unknown_request_raises(self, db: AsyncSession):
        with pytest.raises(NotFoundException):
            await AbsenceSynchronizer.sync(db, uuid.uuid4())


class TestGetAbsences:

    async def test_range_and_department_filters(self, db: AsyncSession):
        eng, _ = await _approved_request(db, department="Engineering", full_name="Ana")
        ops, _ = await _approved_request(db, department="Operations", full_name="Luis")

        everyone = await AbsenceSynchronizer.get_absences(db, WEEK_START, WEEK_START)
        assert [a.employee_name for a in everyone] == ["Ana", "Luis"]

        ops_only = await AbsenceSynchronizer.get_absences(
            db, WEEK_START, WEEK_END, department="Operations",
        )
        assert len(ops_only) == 5
        assert {a.employee_id for a in ops_only} == {ops.id}

        by_id = await AbsenceSynchronizer.get_absences(
            db, WEEK_START, WEEK_END, employee_ids=[eng.id],
        )
        assert {a.department for a in by_id} == {"Engineering"}

    async def test_outside_range_is_empty(self, db: AsyncSession):
        await _approved_request(db)
        later = WEEK_END + timedelta(days=30)
        assert await AbsenceSynchronizer.get_absences(db, later, later + timedelta(days=5)) == []

    async def test_reversed_range_is_empty(self, db: AsyncSession):
        await _approved_request(db)
        assert await AbsenceSynchronizer.get_absences(db, WEEK_END, WEEK_START) == []
