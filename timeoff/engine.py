"""Inbound operations of the vacation engine.

Thin async functions over the services, each taking the caller's
``AsyncSession``. None of them commit: wrap calls in
:func:`timeoff.database.unit_of_work` (or use ``get_db``) so every
side effect of one operation lands or rolls back together.

    async with unit_of_work() as db:
        result = await approve_request(db, request_id, manager_id)
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.calendars.service import DateLike
from timeoff.common.constants import AbsenceType
from timeoff.vacations.balance import BalanceService
from timeoff.vacations.lifecycle import RequestLifecycle
from timeoff.vacations.schemas import (
    BalanceLookupOut,
    BulkAssignResult,
    RequestActionResult,
    ValidationResult,
    VacationBalanceOut,
)
from timeoff.vacations.validator import RequestValidator


# ── Requests ────────────────────────────────────────────────────────

async def create_request(
    db: AsyncSession,
    employee_id: uuid.UUID,
    start: DateLike,
    end: DateLike,
    type: str = AbsenceType.vacation.value,
    *,
    today: Optional[date] = None,
) -> RequestActionResult:
    return await RequestLifecycle.create(db, employee_id, start, end, type, today=today)


async def submit_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    caller_employee_id: uuid.UUID,
    *,
    today: Optional[date] = None,
) -> RequestActionResult:
    return await RequestLifecycle.submit(db, request_id, caller_employee_id, today=today)


async def approve_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    approver_employee_id: uuid.UUID,
    is_manager_only: bool = True,
    comment: Optional[str] = None,
) -> RequestActionResult:
    return await RequestLifecycle.approve(
        db, request_id, approver_employee_id, is_manager_only, comment,
    )


async def reject_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    approver_employee_id: uuid.UUID,
    is_manager_only: bool = True,
    comment: Optional[str] = None,
) -> RequestActionResult:
    return await RequestLifecycle.reject(
        db, request_id, approver_employee_id, is_manager_only, comment,
    )


async def cancel_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    caller_employee_id: uuid.UUID,
) -> RequestActionResult:
    return await RequestLifecycle.cancel(db, request_id, caller_employee_id)


async def validate_dates(
    db: AsyncSession,
    employee_id: uuid.UUID,
    start: DateLike,
    end: DateLike,
    exclude_request_id: Optional[uuid.UUID] = None,
    *,
    today: Optional[date] = None,
) -> ValidationResult:
    return await RequestValidator.validate(
        db, employee_id, start, end, exclude_request_id, today=today,
    )


# ── Balances ────────────────────────────────────────────────────────

async def get_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceLookupOut:
    """Balance for the pair, or ``configured=False`` with the reason."""
    resolution = await BalanceService.resolve(db, employee_id, year)
    return BalanceLookupOut(
        employee_id=employee_id,
        year=year,
        configured=resolution.configured,
        reason=resolution.reason,
        balance=(
            VacationBalanceOut.model_validate(resolution.balance)
            if resolution.balance is not None
            else None
        ),
    )


async def bulk_assign(
    db: AsyncSession,
    policy_id: uuid.UUID,
    year: int,
    performed_by: Optional[uuid.UUID] = None,
) -> BulkAssignResult:
    return await BalanceService.bulk_assign(db, policy_id, year, performed_by)


async def recalculate_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
) -> Optional[VacationBalanceOut]:
    balance = await BalanceService.recalculate(db, employee_id, year)
    if balance is None:
        return None
    return VacationBalanceOut.model_validate(balance)


async def has_sufficient_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    requested_days: Decimal,
) -> bool:
    return await BalanceService.has_sufficient_balance(db, employee_id, year, requested_days)
