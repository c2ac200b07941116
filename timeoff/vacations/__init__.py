"""Vacations module — policies, balances, validation and the request lifecycle."""

from timeoff.vacations.models import (
    VacationBalance,
    VacationPolicy,
    VacationRequest,
    VacationRequestDay,
)

__all__ = [
    "VacationBalance",
    "VacationPolicy",
    "VacationRequest",
    "VacationRequestDay",
]
