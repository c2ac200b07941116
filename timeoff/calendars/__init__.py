"""Calendar module — weekend/holiday reference data and working-day arithmetic."""

from timeoff.calendars.models import CalendarDay

__all__ = ["CalendarDay"]
