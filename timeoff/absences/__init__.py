"""Absences module — the derived who-is-absent-when calendar."""

from timeoff.absences.models import AbsenceEntry

__all__ = ["AbsenceEntry"]
