"""Mutable state shared by the scheduling passes during one generation run."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    OPEN_DAYS,
    Employee,
    LockedShift,
    ScheduleAssignment,
    ScheduleConflict,
    ScheduleOverride,
    ScheduleWarning,
    Shift,
)
from restaurant_scheduler.services.constraints import Eligibility, can_assign
from restaurant_scheduler.services.requirements import ExpandedWeek
from restaurant_scheduler.services.timeplan import calculate_shift_hours, time_to_minutes

logger = logging.getLogger(__name__)


class GenerationContext:
    """
    Working set for a single week: roster, expanded shifts, and the
    assignments, conflicts and warnings accumulated so far.

    Passes only add to it through ``add_assignment``, ``conflict`` and
    ``warn`` so hours, shift counts and slot capacity stay in step.
    """

    def __init__(
        self,
        expanded: ExpandedWeek,
        employees: Iterable[Employee],
        overrides: Iterable[ScheduleOverride],
        config: SchedulerConfig,
        locked_shifts: Iterable[LockedShift] = (),
        prior_assignments: Iterable[ScheduleAssignment] = (),
    ):
        self.expanded = expanded
        self.week_start: date = expanded.week_start
        self.employees: List[Employee] = list(employees)
        self.overrides: List[ScheduleOverride] = list(overrides)
        self.config = config
        self.locked_shifts: List[LockedShift] = list(locked_shifts)
        self.prior_assignments: List[ScheduleAssignment] = list(prior_assignments)

        self.assignments: List[ScheduleAssignment] = []
        self.conflicts: List[ScheduleConflict] = []
        self.warnings: List[ScheduleWarning] = list(expanded.warnings)

        self.hours: Dict[str, float] = defaultdict(float)
        self.shift_counts: Dict[str, int] = defaultdict(int)
        self.filled: Dict[Tuple[date, str], int] = defaultdict(int)

        self._by_id = {}
        self._roster_index = {}
        for index, employee in enumerate(self.employees):
            self._by_id.setdefault(employee.id, employee)
            self._roster_index.setdefault(employee.id, index)
        self._keys = set()

    # Roster

    def employee(self, employee_id: str) -> Optional[Employee]:
        return self._by_id.get(employee_id)

    def roster_index(self, employee_id: str) -> int:
        return self._roster_index.get(employee_id, len(self.employees))

    def active_employees(self) -> List[Employee]:
        return [e for e in self.employees if e.is_active]

    # Days and shifts

    def is_closed(self, day: str) -> bool:
        return day not in OPEN_DAYS or self.expanded.is_closed(day)

    def early_close(self, day: str) -> Optional[str]:
        return self.expanded.early_close.get(day)

    def shifts_for(self, day: str) -> List[Shift]:
        return self.expanded.shifts_for(day)

    def shift_by_id(self, shift_id: str, day_date: date) -> Optional[Shift]:
        for shift in self.expanded.shifts:
            if shift.id == shift_id and shift.date == day_date:
                return shift
        return None

    def add_shift(self, shift: Shift) -> None:
        self.expanded.shifts.append(shift)

    def remaining(self, shift: Shift) -> int:
        return max(0, shift.required_staff - self.filled[(shift.date, shift.id)])

    def consume(self, shift: Shift) -> None:
        # Slot ids only need to be unique within a day
        self.filled[(shift.date, shift.id)] += 1

    # Assignments

    def check(
        self,
        employee: Employee,
        day: str,
        day_date: date,
        start: str,
        end: str,
        **kwargs,
    ) -> Eligibility:
        return can_assign(
            employee,
            day,
            day_date,
            start,
            end,
            self.assignments,
            overrides=self.overrides,
            config=self.config,
            **kwargs,
        )

    def check_shift(self, employee: Employee, shift: Shift, **kwargs) -> Eligibility:
        return self.check(
            employee,
            shift.day,
            shift.date,
            shift.start_time,
            shift.end_time,
            bucket=shift.bucket,
            slot_label=shift.label,
            **kwargs,
        )

    def has_key(self, employee_id: str, day_date: date, shift_id: str) -> bool:
        return (employee_id, day_date, shift_id) in self._keys

    def add_assignment(
        self,
        shift_id: str,
        employee_id: str,
        day_date: date,
        start: str,
        end: str,
    ) -> Optional[ScheduleAssignment]:
        """Record an assignment; a repeated (employee, date, shift) triple is ignored."""
        assignment = ScheduleAssignment(
            shift_id=shift_id,
            employee_id=employee_id,
            date=day_date,
            start_time=start,
            end_time=end,
        )
        if assignment.key in self._keys:
            logger.debug("Skipping duplicate assignment %s", assignment.key)
            return None
        self._keys.add(assignment.key)
        self.assignments.append(assignment)
        self.hours[employee_id] += calculate_shift_hours(start, end)
        self.shift_counts[employee_id] += 1
        return assignment

    def assignments_on(self, employee_id: str, day_date: date) -> List[ScheduleAssignment]:
        return [a for a in self.assignments if a.employee_id == employee_id and a.date == day_date]

    def replace_assignments(self, assignments: List[ScheduleAssignment]) -> None:
        """Swap in a filtered/adjusted assignment list and recompute the tallies."""
        self.assignments = list(assignments)
        self._keys = {a.key for a in self.assignments}
        self.hours = defaultdict(float)
        self.shift_counts = defaultdict(int)
        for a in self.assignments:
            self.hours[a.employee_id] += calculate_shift_hours(a.start_time, a.end_time)
            self.shift_counts[a.employee_id] += 1

    def sort_assignments(self) -> None:
        self.assignments.sort(
            key=lambda a: (a.date, time_to_minutes(a.start_time), a.shift_id, a.employee_id)
        )

    # Diagnostics

    def conflict(self, kind: str, shift_id: str, day_date: date, message: str) -> None:
        logger.info("Conflict (%s): %s", kind, message)
        self.conflicts.append(
            ScheduleConflict(type=kind, shift_id=shift_id, date=day_date, message=message)
        )

    def warn(self, kind: str, message: str, employee_id: Optional[str] = None) -> None:
        logger.info("Warning (%s): %s", kind, message)
        self.warnings.append(ScheduleWarning(type=kind, message=message, employee_id=employee_id))
