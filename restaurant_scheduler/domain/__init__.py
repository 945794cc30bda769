"""Domain models and data access layer."""

from .models import (
    Employee,
    ScheduleAssignment,
    ScheduleConflict,
    ScheduleOverride,
    ScheduleWarning,
    Shift,
    WeeklySchedule,
    WeeklyStaffingNeeds,
)
from .repositories import ScheduleRepository
from .tables import Base

__all__ = [
    "Employee",
    "ScheduleAssignment",
    "ScheduleConflict",
    "ScheduleOverride",
    "ScheduleWarning",
    "Shift",
    "WeeklySchedule",
    "WeeklyStaffingNeeds",
    "ScheduleRepository",
    "Base",
]
