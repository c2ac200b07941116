"""Vacation Pydantic v2 schemas — engine inputs and results.

Naming conventions:
  - *Create / *Update   → administrative inputs (write)
  - *Out                → read projections of ORM rows
  - *Result             → outcomes of engine operations (never raised)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timeoff.common.constants import (
    AbsenceType,
    AccrualType,
    BalanceGap,
    RefusalReason,
    RequestStatus,
)


# ═════════════════════════════════════════════════════════════════════
# Policies
# ═════════════════════════════════════════════════════════════════════


class VacationPolicyCreate(BaseModel):
    """Payload for a new yearly policy."""

    name: str = Field(..., min_length=1, max_length=150)
    year: int = Field(..., ge=1900, le=9999)
    accrual_type: Optional[str] = None
    total_days_per_year: Decimal
    carry_over_max_days: Decimal = Decimal("0")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class VacationPolicyUpdate(BaseModel):
    """Partial update — every field optional."""

    name: Optional[str] = Field(None, max_length=150)
    year: Optional[int] = Field(None, ge=1900, le=9999)
    accrual_type: Optional[str] = None
    total_days_per_year: Optional[Decimal] = None
    carry_over_max_days: Optional[Decimal] = None


class VacationPolicyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    year: int
    accrual_type: AccrualType
    total_days_per_year: Decimal
    carry_over_max_days: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════


class VacationBalanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    policy_id: uuid.UUID
    year: int
    allocated_days: Decimal
    used_days: Decimal
    remaining_days: Decimal
    updated_at: Optional[datetime] = None


class BalanceLookupOut(BaseModel):
    """Balance for an (employee, year) pair, or the reason there is none.

    ``configured=False`` means "no balance can exist" — distinct from a
    configured balance with zero remaining days.
    """

    employee_id: uuid.UUID
    year: int
    configured: bool
    reason: Optional[BalanceGap] = None
    balance: Optional[VacationBalanceOut] = None


class BulkAssignResult(BaseModel):
    created: int = 0
    skipped: int = 0
    total: int = 0


class TeamBalanceOut(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    full_name: str
    department: Optional[str] = None
    year: int
    allocated_days: Decimal = Decimal("0")
    used_days: Decimal = Decimal("0")
    remaining_days: Decimal = Decimal("0")
    policy_name: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Validation
# ═════════════════════════════════════════════════════════════════════


class ValidationResult(BaseModel):
    """Outcome of validating a candidate date range. Warnings never block."""

    is_valid: bool = False
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    working_days: Decimal = Decimal("0")
    available_days: Decimal = Decimal("0")


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class VacationRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    requested_days: Decimal
    type: AbsenceType
    status: RequestStatus
    approver_employee_id: Optional[uuid.UUID] = None
    approver_comment: Optional[str] = None
    submitted_at: Optional[datetime] = None
    decision_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RequestActionResult(BaseModel):
    """Outcome of a lifecycle operation.

    ``success=False`` carries a :class:`RefusalReason` plus human readable
    errors; nothing was persisted in that case.
    """

    success: bool
    message: str
    refusal: Optional[RefusalReason] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    request: Optional[VacationRequestOut] = None

    @classmethod
    def refused(
        cls,
        reason: RefusalReason,
        message: str,
        *,
        errors: Optional[list[str]] = None,
        warnings: Optional[list[str]] = None,
        request: Optional[VacationRequestOut] = None,
    ) -> "RequestActionResult":
        return cls(
            success=False,
            refusal=reason,
            message=message,
            errors=errors if errors is not None else [message],
            warnings=warnings or [],
            request=request,
        )


# ═════════════════════════════════════════════════════════════════════
# Absences
# ═════════════════════════════════════════════════════════════════════


class AbsenceEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    date: date
    absence_type: AbsenceType
    source_request_id: Optional[uuid.UUID] = None
    employee_name: Optional[str] = None
    department: Optional[str] = None
