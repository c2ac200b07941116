"""Core HR module — the Employee directory read by the vacation engine."""

from timeoff.core_hr.models import Employee

__all__ = ["Employee"]
