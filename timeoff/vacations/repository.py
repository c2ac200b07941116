"""Per-entity data access for the vacation engine.

Each repository is a namespace of async static methods over a shared
``AsyncSession``; the session is the unit of work, so repositories only
flush and never commit.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timeoff.common.constants import INACTIVE_REQUEST_STATUSES, RequestStatus
from timeoff.core_hr.models import Employee
from timeoff.vacations.models import VacationBalance, VacationPolicy, VacationRequest


def _dialect_insert(db: AsyncSession, table: Any):
    """Dialect-specific INSERT supporting ON CONFLICT DO NOTHING."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(table)
    return pg_insert(table)


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


# ═════════════════════════════════════════════════════════════════════
# Employees (read-only directory)
# ═════════════════════════════════════════════════════════════════════


class EmployeeRepository:

    @staticmethod
    async def get(db: AsyncSession, employee_id: uuid.UUID) -> Optional[Employee]:
        return await db.get(Employee, employee_id)

    @staticmethod
    async def active_ids(db: AsyncSession) -> list[uuid.UUID]:
        result = await db.execute(
            select(Employee.id).where(Employee.is_active.is_(True))
        )
        return [row[0] for row in result.all()]

    @staticmethod
    async def subordinates(
        db: AsyncSession,
        manager_id: uuid.UUID,
        *,
        active_only: bool = True,
    ) -> Sequence[Employee]:
        query = select(Employee).where(Employee.manager_id == manager_id)
        if active_only:
            query = query.where(Employee.is_active.is_(True))
        result = await db.execute(query.order_by(Employee.full_name))
        return result.scalars().all()

    @staticmethod
    async def list_active(db: AsyncSession) -> Sequence[Employee]:
        result = await db.execute(
            select(Employee)
            .where(Employee.is_active.is_(True))
            .order_by(Employee.full_name)
        )
        return result.scalars().all()


# ═════════════════════════════════════════════════════════════════════
# Policies
# ═════════════════════════════════════════════════════════════════════


class PolicyRepository:

    @staticmethod
    async def get(db: AsyncSession, policy_id: uuid.UUID) -> Optional[VacationPolicy]:
        return await db.get(VacationPolicy, policy_id)

    @staticmethod
    async def for_year(db: AsyncSession, year: int) -> list[VacationPolicy]:
        """Policies of a year, oldest first (the first one is the default)."""
        result = await db.execute(
            select(VacationPolicy)
            .where(VacationPolicy.year == year)
            .order_by(VacationPolicy.created_at, VacationPolicy.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def name_taken(
        db: AsyncSession,
        name: str,
        year: int,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = select(func.count()).select_from(VacationPolicy).where(
            VacationPolicy.name == name,
            VacationPolicy.year == year,
        )
        if exclude_id is not None:
            query = query.where(VacationPolicy.id != exclude_id)
        return (await db.execute(query)).scalar_one() > 0

    @staticmethod
    async def list_all(db: AsyncSession, year: Optional[int] = None) -> Sequence[VacationPolicy]:
        query = select(VacationPolicy).order_by(
            VacationPolicy.year.desc(), VacationPolicy.name,
        )
        if year is not None:
            query = query.where(VacationPolicy.year == year)
        return (await db.execute(query)).scalars().all()


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════


class BalanceRepository:

    @staticmethod
    async def get(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> Optional[VacationBalance]:
        result = await db.execute(
            select(VacationBalance).where(
                VacationBalance.employee_id == employee_id,
                VacationBalance.year == year,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def employee_ids_with_balance(db: AsyncSession, year: int) -> set[uuid.UUID]:
        result = await db.execute(
            select(VacationBalance.employee_id).where(VacationBalance.year == year)
        )
        return {row[0] for row in result.all()}

    @staticmethod
    async def remaining_by_employee(
        db: AsyncSession,
        employee_ids: Iterable[uuid.UUID],
        year: int,
    ) -> dict[uuid.UUID, Decimal]:
        ids = list(employee_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(VacationBalance.employee_id, VacationBalance.remaining_days).where(
                VacationBalance.year == year,
                VacationBalance.employee_id.in_(ids),
            )
        )
        return {row[0]: Decimal(str(row[1])) for row in result.all()}

    @staticmethod
    async def count_for_policy(db: AsyncSession, policy_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(VacationBalance).where(
                VacationBalance.policy_id == policy_id,
            )
        )
        return result.scalar_one()

    @staticmethod
    async def insert_if_absent(
        db: AsyncSession, rows: list[dict[str, Any]],
    ) -> set[uuid.UUID]:
        """INSERT … ON CONFLICT (employee_id, year) DO NOTHING.

        The unique constraint makes a concurrent first access converge on
        a single row instead of failing or duplicating. Rows go out in
        executemany form, so the driver batches them under its bind
        parameter limit. Returns the employee ids that actually got a row.
        """
        if not rows:
            return set()
        now = datetime.now(timezone.utc)
        values = [
            {"id": uuid.uuid4(), "updated_at": now, **row}
            for row in rows
        ]
        stmt = (
            _dialect_insert(db, VacationBalance.__table__)
            .on_conflict_do_nothing(index_elements=["employee_id", "year"])
            .returning(VacationBalance.__table__.c.employee_id)
        )
        result = await db.execute(stmt, values)
        return set(result.scalars().all())

    @staticmethod
    async def list_for_employees(
        db: AsyncSession,
        employee_ids: Iterable[uuid.UUID],
        year: int,
    ) -> dict[uuid.UUID, tuple[VacationBalance, VacationPolicy]]:
        ids = list(employee_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(VacationBalance, VacationPolicy)
            .join(VacationPolicy, VacationBalance.policy_id == VacationPolicy.id)
            .where(
                VacationBalance.year == year,
                VacationBalance.employee_id.in_(ids),
            )
        )
        return {bal.employee_id: (bal, pol) for bal, pol in result.all()}


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class RequestRepository:

    @staticmethod
    async def get(db: AsyncSession, request_id: uuid.UUID) -> Optional[VacationRequest]:
        return await db.get(VacationRequest, request_id)

    @staticmethod
    async def get_with_days(
        db: AsyncSession,
        request_id: uuid.UUID,
    ) -> Optional[VacationRequest]:
        result = await db.execute(
            select(VacationRequest)
            .where(VacationRequest.id == request_id)
            .options(selectinload(VacationRequest.days))
        )
        return result.scalars().first()

    @staticmethod
    async def approved_days_in_year(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> Decimal:
        """Sum requested_days of APPROVED requests starting in ``year``."""
        first, last = _year_bounds(year)
        result = await db.execute(
            select(func.coalesce(func.sum(VacationRequest.requested_days), 0)).where(
                VacationRequest.employee_id == employee_id,
                VacationRequest.status == RequestStatus.approved,
                VacationRequest.start_date >= first,
                VacationRequest.start_date <= last,
            )
        )
        return Decimal(str(result.scalar_one()))

    @staticmethod
    async def find_overlapping(
        db: AsyncSession,
        employee_id: uuid.UUID,
        start: date,
        end: date,
        *,
        exclude_request_id: Optional[uuid.UUID] = None,
    ) -> list[VacationRequest]:
        """Still-active requests of the employee intersecting [start, end]."""
        query = select(VacationRequest).where(
            VacationRequest.employee_id == employee_id,
            VacationRequest.status.not_in(list(INACTIVE_REQUEST_STATUSES)),
            VacationRequest.start_date <= end,
            VacationRequest.end_date >= start,
        )
        if exclude_request_id is not None:
            query = query.where(VacationRequest.id != exclude_request_id)
        result = await db.execute(
            query.order_by(VacationRequest.start_date, VacationRequest.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def search(
        db: AsyncSession,
        *,
        employee_ids: Optional[list[uuid.UUID]] = None,
        status: Optional[RequestStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[VacationRequest]:
        query = select(VacationRequest).order_by(VacationRequest.created_at.desc())
        if employee_ids is not None:
            query = query.where(VacationRequest.employee_id.in_(employee_ids))
        if status is not None:
            query = query.where(VacationRequest.status == status)
        if from_date is not None:
            query = query.where(VacationRequest.start_date >= from_date)
        if to_date is not None:
            query = query.where(VacationRequest.end_date <= to_date)
        return (await db.execute(query)).scalars().all()
