"""Vacation balance store — per-employee, per-year entitlement with carry-over.

Business logic:
  - Lazy creation of a year's balance from that year's policy plus the
    carry-over left in the previous year (bounded by the policy maximum)
  - Recalculation of used days from APPROVED requests starting in the year
  - Bulk assignment of a policy's balance to every active employee
  - Team balance overview for managers / HR
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.audit import create_audit_entry
from timeoff.common.constants import ZERO_DAYS, BalanceGap
from timeoff.common.exceptions import NotFoundException
from timeoff.vacations.models import VacationBalance, VacationPolicy
from timeoff.vacations.repository import (
    BalanceRepository,
    EmployeeRepository,
    PolicyRepository,
    RequestRepository,
)
from timeoff.vacations.schemas import BulkAssignResult, TeamBalanceOut

logger = logging.getLogger(__name__)


@dataclass
class BalanceResolution:
    """A balance, or the configuration gap that prevents one from existing."""

    balance: Optional[VacationBalance] = None
    reason: Optional[BalanceGap] = None

    @property
    def configured(self) -> bool:
        return self.balance is not None


def carry_over_amount(
    previous: Optional[VacationBalance],
    policy: VacationPolicy,
) -> Decimal:
    """min(max(previous remaining, 0), policy cap); 0 without a previous balance."""
    if previous is None or previous.remaining_days is None:
        return ZERO_DAYS
    remaining = max(Decimal(previous.remaining_days), ZERO_DAYS)
    return min(remaining, Decimal(policy.carry_over_max_days or 0))


def _new_balance_row(
    employee_id: uuid.UUID,
    policy: VacationPolicy,
    year: int,
    carry_over: Decimal,
) -> dict[str, Any]:
    allocated = Decimal(policy.total_days_per_year) + carry_over
    return {
        "employee_id": employee_id,
        "policy_id": policy.id,
        "year": year,
        "allocated_days": allocated,
        "used_days": ZERO_DAYS,
        "remaining_days": allocated,
    }


# ═════════════════════════════════════════════════════════════════════
# BalanceService
# ═════════════════════════════════════════════════════════════════════


class BalanceService:
    """Async balance operations. Only flushes; the caller owns the commit."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _policy_for_year(db: AsyncSession, year: int) -> Optional[VacationPolicy]:
        policies = await PolicyRepository.for_year(db, year)
        if not policies:
            return None
        if len(policies) > 1:
            logger.warning(
                "%d vacation policies configured for %d; using %r",
                len(policies), year, policies[0].name,
            )
        return policies[0]

    @staticmethod
    async def _carry_over(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
        policy: VacationPolicy,
    ) -> Decimal:
        previous = await BalanceRepository.get(db, employee_id, year - 1)
        return carry_over_amount(previous, policy)

    # ─────────────────────────────────────────────────────────────────
    # Get or create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def resolve(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> BalanceResolution:
        """Return the (employee, year) balance, creating it on first access.

        An existing balance is returned unchanged. Otherwise the year's
        policy and an active employee are required; the reason is reported
        when either is missing.
        """
        existing = await BalanceRepository.get(db, employee_id, year)
        if existing is not None:
            return BalanceResolution(balance=existing)

        policy = await BalanceService._policy_for_year(db, year)
        if policy is None:
            return BalanceResolution(reason=BalanceGap.no_policy)

        employee = await EmployeeRepository.get(db, employee_id)
        if employee is None:
            return BalanceResolution(reason=BalanceGap.employee_not_found)
        if not employee.is_active:
            return BalanceResolution(reason=BalanceGap.employee_inactive)

        carry_over = await BalanceService._carry_over(db, employee_id, year, policy)
        await BalanceRepository.insert_if_absent(
            db, [_new_balance_row(employee_id, policy, year, carry_over)],
        )

        balance = await BalanceRepository.get(db, employee_id, year)
        if balance is not None:
            logger.info(
                "Created %d vacation balance for employee %s: %s days (carry-over %s)",
                year, employee_id, balance.allocated_days, carry_over,
            )
        return BalanceResolution(balance=balance)

    @staticmethod
    async def get_or_create(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> Optional[VacationBalance]:
        """Balance for the pair, or None when the year/employee is unconfigured."""
        resolution = await BalanceService.resolve(db, employee_id, year)
        return resolution.balance

    # ─────────────────────────────────────────────────────────────────
    # Recalculate
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def recalculate(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> Optional[VacationBalance]:
        """Recompute used/remaining from APPROVED requests. Never creates."""
        balance = await BalanceRepository.get(db, employee_id, year)
        if balance is None:
            return None

        used = await RequestRepository.approved_days_in_year(db, employee_id, year)
        balance.apply_used(used)
        await db.flush()

        logger.debug(
            "Recalculated %d balance for employee %s: used=%s remaining=%s",
            year, employee_id, balance.used_days, balance.remaining_days,
        )
        return balance

    @staticmethod
    async def has_sufficient_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
        requested_days: Decimal,
    ) -> bool:
        balance = await BalanceService.get_or_create(db, employee_id, year)
        if balance is None:
            return False
        return Decimal(balance.remaining_days) >= requested_days

    # ─────────────────────────────────────────────────────────────────
    # Bulk assign
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def bulk_assign(
        db: AsyncSession,
        policy_id: uuid.UUID,
        year: int,
        performed_by: Optional[uuid.UUID] = None,
    ) -> BulkAssignResult:
        """Give every active employee without a ``year`` balance one from ``policy_id``.

        Carry-over is computed per employee; a missing previous balance
        simply means no carry-over.
        """
        policy = await PolicyRepository.get(db, policy_id)
        if policy is None:
            raise NotFoundException("VacationPolicy", str(policy_id))

        active_ids = await EmployeeRepository.active_ids(db)
        already = await BalanceRepository.employee_ids_with_balance(db, year)
        pending = [emp_id for emp_id in active_ids if emp_id not in already]

        previous = await BalanceRepository.remaining_by_employee(db, pending, year - 1)
        cap = Decimal(policy.carry_over_max_days or 0)
        rows = []
        for emp_id in pending:
            remaining = previous.get(emp_id)
            carry_over = ZERO_DAYS if remaining is None else min(max(remaining, ZERO_DAYS), cap)
            rows.append(_new_balance_row(emp_id, policy, year, carry_over))

        # A concurrent writer may claim some pending employees first
        created_ids = await BalanceRepository.insert_if_absent(db, rows)
        await db.flush()

        result = BulkAssignResult(
            created=len(created_ids),
            skipped=len(active_ids) - len(created_ids),
            total=len(active_ids),
        )

        await create_audit_entry(
            db,
            action="bulk_assign",
            entity_type="vacation_policy",
            entity_id=policy.id,
            actor_id=performed_by,
            new_values={"year": year, **result.model_dump()},
        )

        logger.info(
            "Bulk assigned policy %r for %d: created=%d skipped=%d total=%d",
            policy.name, year, result.created, result.skipped, result.total,
        )
        return result

    # ─────────────────────────────────────────────────────────────────
    # Team balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def team_balances(
        db: AsyncSession,
        manager_id: uuid.UUID,
        year: int,
        *,
        include_all: bool = False,
    ) -> list[TeamBalanceOut]:
        """Balances of direct subordinates (or every active employee for HR)."""
        if include_all:
            employees = await EmployeeRepository.list_active(db)
        else:
            employees = await EmployeeRepository.subordinates(db, manager_id)

        by_employee = await BalanceRepository.list_for_employees(
            db, [emp.id for emp in employees], year,
        )

        items: list[TeamBalanceOut] = []
        for emp in employees:
            entry = TeamBalanceOut(
                employee_id=emp.id,
                employee_code=emp.employee_code,
                full_name=emp.full_name,
                department=emp.department,
                year=year,
            )
            found = by_employee.get(emp.id)
            if found is not None:
                balance, policy = found
                entry.allocated_days = balance.allocated_days
                entry.used_days = balance.used_days
                entry.remaining_days = balance.remaining_days
                entry.policy_name = policy.name
            items.append(entry)
        return items
