"""Common module — shared utilities for the vacation engine."""

from timeoff.common.audit import AuditTrail, create_audit_entry
from timeoff.common.constants import (
    DATE_FORMAT,
    AbsenceType,
    AccrualType,
    BalanceGap,
    RefusalReason,
    RequestStatus,
)
from timeoff.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AbsenceType",
    "AccrualType",
    "BalanceGap",
    "RefusalReason",
    "RequestStatus",
    "DATE_FORMAT",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
]
