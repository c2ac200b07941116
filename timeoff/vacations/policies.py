"""Vacation policy administration (HR).

Errors:
  - ``NotFoundException`` for unknown policy ids
  - ``ConflictError`` when another policy already uses the name in that year
  - ``ValidationException`` for bad day counts or a policy still in use
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.common.audit import create_audit_entry
from timeoff.common.constants import AccrualType
from timeoff.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from timeoff.vacations.models import VacationPolicy
from timeoff.vacations.repository import BalanceRepository, PolicyRepository
from timeoff.vacations.schemas import (
    VacationPolicyCreate,
    VacationPolicyOut,
    VacationPolicyUpdate,
)

logger = logging.getLogger(__name__)


def _normalize_accrual(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return AccrualType.annual.value
    upper = value.strip().upper()
    try:
        return AccrualType(upper).value
    except ValueError:
        raise ValidationException(
            {"accrual_type": [f"Unknown accrual type '{value}'."]}
        )


def _check_days(total: Optional[Decimal], carry_over_max: Optional[Decimal]) -> None:
    errors: dict[str, list[str]] = {}
    if total is not None and total <= 0:
        errors["total_days_per_year"] = ["Must be greater than 0."]
    if carry_over_max is not None and carry_over_max < 0:
        errors["carry_over_max_days"] = ["Must be 0 or greater."]
    if errors:
        raise ValidationException(errors)


def _snapshot(policy: VacationPolicy) -> dict[str, Any]:
    return {
        "name": policy.name,
        "year": policy.year,
        "accrual_type": policy.accrual_type,
        "total_days_per_year": str(policy.total_days_per_year),
        "carry_over_max_days": str(policy.carry_over_max_days),
    }


class PolicyService:

    @staticmethod
    async def _get_or_404(db: AsyncSession, policy_id: uuid.UUID) -> VacationPolicy:
        policy = await PolicyRepository.get(db, policy_id)
        if policy is None:
            raise NotFoundException("VacationPolicy", str(policy_id))
        return policy

    @staticmethod
    async def list_policies(
        db: AsyncSession,
        year: Optional[int] = None,
    ) -> list[VacationPolicyOut]:
        policies = await PolicyRepository.list_all(db, year)
        return [VacationPolicyOut.model_validate(p) for p in policies]

    @staticmethod
    async def get_policy(db: AsyncSession, policy_id: uuid.UUID) -> VacationPolicyOut:
        policy = await PolicyService._get_or_404(db, policy_id)
        return VacationPolicyOut.model_validate(policy)

    @staticmethod
    async def create_policy(
        db: AsyncSession,
        data: VacationPolicyCreate,
        *,
        performed_by: Optional[uuid.UUID] = None,
    ) -> VacationPolicyOut:
        _check_days(data.total_days_per_year, data.carry_over_max_days)
        accrual = _normalize_accrual(data.accrual_type)

        if await PolicyRepository.name_taken(db, data.name, data.year):
            raise ConflictError("name", f"{data.name} ({data.year})")

        policy = VacationPolicy(
            name=data.name,
            year=data.year,
            accrual_type=accrual,
            total_days_per_year=data.total_days_per_year,
            carry_over_max_days=data.carry_over_max_days,
        )
        db.add(policy)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="vacation_policy",
            entity_id=policy.id,
            actor_id=performed_by,
            new_values=_snapshot(policy),
        )
        logger.info("Created vacation policy %r for %d", policy.name, policy.year)
        return VacationPolicyOut.model_validate(policy)

    @staticmethod
    async def update_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        data: VacationPolicyUpdate,
        *,
        performed_by: Optional[uuid.UUID] = None,
    ) -> VacationPolicyOut:
        """Partial update. Existing balances keep the allocation they were created with."""
        policy = await PolicyService._get_or_404(db, policy_id)
        _check_days(data.total_days_per_year, data.carry_over_max_days)

        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            name = (update_data["name"] or "").strip()
            if not name:
                raise ValidationException({"name": ["Name must not be blank."]})
            update_data["name"] = name
        if "accrual_type" in update_data:
            update_data["accrual_type"] = _normalize_accrual(update_data["accrual_type"])

        new_name = update_data.get("name", policy.name)
        new_year = update_data.get("year", policy.year)
        if (new_name, new_year) != (policy.name, policy.year):
            if await PolicyRepository.name_taken(db, new_name, new_year, exclude_id=policy.id):
                raise ConflictError("name", f"{new_name} ({new_year})")

        old_values = _snapshot(policy)
        for field, value in update_data.items():
            if value is not None:
                setattr(policy, field, value)
        policy.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="vacation_policy",
            entity_id=policy.id,
            actor_id=performed_by,
            old_values=old_values,
            new_values=_snapshot(policy),
        )
        return VacationPolicyOut.model_validate(policy)

    @staticmethod
    async def delete_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        *,
        performed_by: Optional[uuid.UUID] = None,
    ) -> None:
        policy = await PolicyService._get_or_404(db, policy_id)

        in_use = await BalanceRepository.count_for_policy(db, policy.id)
        if in_use:
            raise ValidationException(
                {"policy": [
                    f"Policy is assigned to {in_use} balance(s) and cannot be deleted."
                ]}
            )

        old_values = _snapshot(policy)
        await db.delete(policy)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="vacation_policy",
            entity_id=policy_id,
            actor_id=performed_by,
            old_values=old_values,
        )
        logger.info("Deleted vacation policy %r for %d", old_values["name"], old_values["year"])
