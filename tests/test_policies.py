"""Vacation policy administration tests — CRUD rules and audit."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.audit import AuditTrail
from timeoff.common.constants import AccrualType
from timeoff.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from timeoff.vacations.policies import PolicyService
from timeoff.vacations.schemas import VacationPolicyCreate, VacationPolicyUpdate
from tests.conftest import _seed_balance, _seed_employee, _seed_policy


def _payload(**overrides) -> VacationPolicyCreate:
    data = dict(
        name="Standard",
        year=2027,
        total_days_per_year=Decimal("22"),
        carry_over_max_days=Decimal("5"),
    )
    data.update(overrides)
    return VacationPolicyCreate(**data)


class TestCreatePolicy:

    async def test_create_defaults_to_annual(self, db: AsyncSession):
        hr = await _seed_employee(db)

        policy = await PolicyService.create_policy(db, _payload(name="  Standard  "), performed_by=hr.id)

        assert policy.name == "Standard"
        assert policy.accrual_type == AccrualType.annual
        assert policy.total_days_per_year == Decimal("22")

        audit = (await db.execute(
            select(AuditTrail).where(AuditTrail.entity_id == policy.id)
        )).scalars().one()
        assert audit.action == "create"
        assert audit.actor_id == hr.id

    async def test_accrual_type_is_upper_cased(self, db: AsyncSession):
        policy = await PolicyService.create_policy(db, _payload(accrual_type="monthly"))
        assert policy.accrual_type == AccrualType.monthly

    async def test_unknown_accrual_type(self, db: AsyncSession):
        with pytest.raises(ValidationException) as exc_info:
            await PolicyService.create_policy(db, _payload(accrual_type="weekly"))
        assert "accrual_type" in exc_info.value.errors

    async def test_duplicate_name_in_year_conflicts(self, db: AsyncSession):
        await PolicyService.create_policy(db, _payload())
        with pytest.raises(ConflictError):
            await PolicyService.create_policy(db, _payload())

    async def test_same_name_other_year_allowed(self, db: AsyncSession):
        await PolicyService.create_policy(db, _payload())
        policy = await PolicyService.create_policy(db, _payload(year=2028))
        assert policy.year == 2028

    async def test_day_counts_validated(self, db: AsyncSession):
        with pytest.raises(ValidationException) as exc_info:
            await PolicyService.create_policy(
                db, _payload(total_days_per_year=Decimal("0"), carry_over_max_days=Decimal("-1")),
            )
        assert set(exc_info.value.errors) == {"total_days_per_year", "carry_over_max_days"}


class TestUpdatePolicy:

    async def test_partial_update(self, db: AsyncSession):
        created = await PolicyService.create_policy(db, _payload())

        updated = await PolicyService.update_policy(
            db, created.id, VacationPolicyUpdate(carry_over_max_days=Decimal("3")),
        )

        assert updated.carry_over_max_days == Decimal("3")
        assert updated.name == "Standard"

    async def test_rename_into_existing_conflicts(self, db: AsyncSession):
        await PolicyService.create_policy(db, _payload(name="A"))
        other = await PolicyService.create_policy(db, _payload(name="B"))

        with pytest.raises(ConflictError):
            await PolicyService.update_policy(db, other.id, VacationPolicyUpdate(name="A"))

    async def test_unknown_policy(self, db: AsyncSession):
        with pytest.raises(NotFoundException):
            await PolicyService.update_policy(db, uuid.uuid4(), VacationPolicyUpdate(name="X"))


class TestDeleteAndList:

    async def test_delete_unused_policy(self, db: AsyncSession):
        created = await PolicyService.create_policy(db, _payload())
        await PolicyService.delete_policy(db, created.id)

        with pytest.raises(NotFoundException):
            await PolicyService.get_policy(db, created.id)

    async def test_delete_in_use_refused(self, db: AsyncSession):
        emp = await _seed_employee(db)
        policy = await _seed_policy(db, year=2027)
        await _seed_balance(db, emp.id, policy)

        with pytest.raises(ValidationException):
            await PolicyService.delete_policy(db, policy.id)

    async def test_list_by_year(self, db: AsyncSession):
        await PolicyService.create_policy(db, _payload(name="B"))
        await PolicyService.create_policy(db, _payload(name="A"))
        await PolicyService.create_policy(db, _payload(name="C", year=2026))

        assert [p.name for p in await PolicyService.list_policies(db, 2027)] == ["A", "B"]
        assert [p.year for p in await PolicyService.list_policies(db)] == [2027, 2027, 2026]
