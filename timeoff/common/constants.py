"""Enums and constants for the vacation engine — matching stored string values."""

from __future__ import annotations

import enum
from decimal import Decimal


# ── Vacation ────────────────────────────────────────────────────────

class RequestStatus(str, enum.Enum):
    draft = "DRAFT"
    submitted = "SUBMITTED"
    approved = "APPROVED"
    rejected = "REJECTED"
    cancelled = "CANCELLED"


class AbsenceType(str, enum.Enum):
    vacation = "VACATION"
    personal = "PERSONAL"
    other = "OTHER"


class AccrualType(str, enum.Enum):
    annual = "ANNUAL"
    monthly = "MONTHLY"


class RefusalReason(str, enum.Enum):
    validation_failed = "validation_failed"
    invalid_state = "invalid_state"
    forbidden = "forbidden"
    comment_required = "comment_required"


class BalanceGap(str, enum.Enum):
    """Why no balance could be resolved for an (employee, year) pair."""

    no_policy = "no_policy"
    employee_not_found = "employee_not_found"
    employee_inactive = "employee_inactive"


# Statuses that no longer block the calendar for overlap purposes
INACTIVE_REQUEST_STATUSES: frozenset[RequestStatus] = frozenset(
    {RequestStatus.rejected, RequestStatus.cancelled}
)

FULL_DAY = Decimal("1.0")
ZERO_DAYS = Decimal("0")

DATE_FORMAT = "%d/%m/%Y"
