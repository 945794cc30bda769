"""Hard-constraint checks for placing an employee on a candidate shift."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    Employee,
    ScheduleAssignment,
    ScheduleOverride,
)

from .labels import is_bartender_qualified, normalize_slot_label
from .timeplan import (
    absolute_minutes,
    calculate_shift_hours,
    intervals_overlap,
    is_valid_time,
    shift_bucket,
    time_to_minutes,
    week_start_for,
)

logger = logging.getLogger(__name__)


@dataclass
class Eligibility:
    """Outcome of ``can_assign``.

    ``fixed_window`` is set when a fixed-shift permanent rule covers the day;
    callers placing the employee should use those times instead of the slot's.
    """

    allowed: bool
    reason: Optional[str] = None
    fixed_window: Optional[Tuple[str, str]] = None


def is_excluded_on(employee: Employee, day_date: date) -> bool:
    return any(exclusion.covers(day_date) for exclusion in employee.exclusions)


def find_exclude_override(
    overrides: Iterable[ScheduleOverride],
    employee_id: str,
    day: str,
    bucket: str,
) -> Optional[ScheduleOverride]:
    for override in overrides:
        if (
            override.type == "exclude"
            and override.employee_id == employee_id
            and override.day == day
            and override.matches_bucket(bucket)
        ):
            return override
    return None


def overlaps_existing(
    employee_id: str,
    day_date: date,
    start: str,
    end: str,
    existing: Iterable[ScheduleAssignment],
) -> bool:
    s, e = time_to_minutes(start), time_to_minutes(end)
    for assignment in existing:
        if assignment.employee_id != employee_id or assignment.date != day_date:
            continue
        if intervals_overlap(s, e, time_to_minutes(assignment.start_time), time_to_minutes(assignment.end_time)):
            return True
    return False


def violates_min_rest(
    employee_id: str,
    day_date: date,
    start: str,
    end: str,
    existing: Iterable[ScheduleAssignment],
    min_rest_hours: float,
) -> bool:
    """True if the candidate sits closer than ``min_rest_hours`` to another shift this week."""
    rest = max(0.0, min_rest_hours) * 60
    if rest == 0:
        return False
    week_start = week_start_for(day_date)
    cand_start = absolute_minutes(week_start, day_date, start)
    cand_end = absolute_minutes(week_start, day_date, end)
    for assignment in existing:
        if assignment.employee_id != employee_id:
            continue
        other_start = absolute_minutes(week_start, assignment.date, assignment.start_time)
        other_end = absolute_minutes(week_start, assignment.date, assignment.end_time)
        if intervals_overlap(cand_start, cand_end, other_start, other_end):
            return True
        if cand_start >= other_end and cand_start - other_end < rest:
            return True
        if other_start >= cand_end and other_start - cand_end < rest:
            return True
    return False


def restriction_blocks(employee: Employee, day: str, start: str, end: str) -> Optional[str]:
    s, e = time_to_minutes(start), time_to_minutes(end)
    for restriction in employee.restrictions:
        if not restriction.applies_to(day):
            continue
        if restriction.type == "no_before" and is_valid_time(restriction.time):
            if s < time_to_minutes(restriction.time):
                return f"cannot start before {restriction.time}"
        elif restriction.type == "no_after" and is_valid_time(restriction.time):
            if e > time_to_minutes(restriction.time):
                return f"cannot work after {restriction.time}"
        elif restriction.type == "unavailable_range":
            if is_valid_time(restriction.start_time) and is_valid_time(restriction.end_time):
                r0, r1 = time_to_minutes(restriction.start_time), time_to_minutes(restriction.end_time)
                if intervals_overlap(s, e, r0, r1):
                    return f"unavailable {restriction.start_time}-{restriction.end_time}"
    return None


def permanent_rule_check(
    employee: Employee, day: str, start: str, end: str
) -> Tuple[Optional[str], Optional[Tuple[str, str]]]:
    """Return ``(block_reason, fixed_window)`` from the employee's active permanent rules."""
    s, e = time_to_minutes(start), time_to_minutes(end)
    fixed_window = None
    for rule in employee.permanent_rules:
        if not rule.applies_to(day):
            continue
        if rule.type == "never_schedule":
            return f"never scheduled on {day}", None
        has_window = is_valid_time(rule.start_time) and is_valid_time(rule.end_time)
        if rule.type == "only_available" and has_window:
            if s < time_to_minutes(rule.start_time) or e > time_to_minutes(rule.end_time):
                return f"only available {rule.start_time}-{rule.end_time}", None
        elif rule.type == "fixed_shift" and has_window and fixed_window is None:
            fixed_window = (rule.start_time, rule.end_time)
    return None, fixed_window


def fixed_windows_for(employee: Employee, day: str) -> List[Tuple[str, str]]:
    return [
        (rule.start_time, rule.end_time)
        for rule in employee.permanent_rules
        if rule.type == "fixed_shift"
        and rule.applies_to(day)
        and is_valid_time(rule.start_time)
        and is_valid_time(rule.end_time)
    ]


def _within_bounds(entry, start: str, end: str) -> bool:
    if is_valid_time(entry.start_time) and time_to_minutes(start) < time_to_minutes(entry.start_time):
        return False
    if is_valid_time(entry.end_time) and time_to_minutes(end) > time_to_minutes(entry.end_time):
        return False
    return True


def is_available(
    employee: Employee,
    day: str,
    start: str,
    end: str,
    bucket: Optional[str] = None,
    slot_label: Optional[str] = None,
) -> bool:
    """Weekly availability: the day is open and one declared entry covers the shift."""
    day_avail = employee.day_availability(day)
    if not day_avail or not day_avail.available:
        return False
    bucket = bucket or shift_bucket(start)
    is_bar_slot = normalize_slot_label(slot_label, day, start, end) == "Bar" if slot_label else False

    for entry in day_avail.shifts:
        if entry.type == "any" or entry.type == bucket:
            if _within_bounds(entry, start, end):
                return True
        elif entry.type == "bar":
            if is_bar_slot and _within_bounds(entry, start, end):
                return True
        elif entry.type == "custom":
            if not (is_valid_time(entry.start_time) and is_valid_time(entry.end_time)):
                continue
            if _within_bounds(entry, start, end):
                return True
    return False


def can_assign(
    employee: Employee,
    day: str,
    day_date: date,
    start: str,
    end: str,
    existing_assignments: Iterable[ScheduleAssignment],
    *,
    overrides: Iterable[ScheduleOverride] = (),
    config: Optional[SchedulerConfig] = None,
    bucket: Optional[str] = None,
    slot_label: Optional[str] = None,
    check_availability: bool = True,
) -> Eligibility:
    """
    Decide whether ``employee`` may work ``start``-``end`` on ``day_date``.

    Checks run in a fixed order and the first failure wins: inactive flag,
    date exclusion, exclude override, overlap / minimum rest, time-of-day
    restriction, permanent rule, minimum shift duration, weekly availability.

    Args:
        employee: Candidate employee
        day: Weekday name of ``day_date``
        day_date: Calendar date of the shift
        start: Shift start "HH:MM"
        end: Shift end "HH:MM"
        existing_assignments: Assignments already made this week (any employee)
        overrides: Week overrides; only ``exclude`` entries are consulted
        config: SchedulerConfig (defaults used when omitted)
        bucket: Shift bucket; derived from ``start`` when omitted
        slot_label: Slot label, used to match "bar" availability
        check_availability: False for forced placements that bypass availability

    Returns:
        Eligibility with the first blocking reason, if any
    """
    cfg = config or SchedulerConfig()
    existing = list(existing_assignments)
    bucket = bucket or shift_bucket(start)

    if not employee.is_active:
        return Eligibility(False, "inactive")

    if is_excluded_on(employee, day_date):
        return Eligibility(False, f"excluded on {day_date.isoformat()}")

    if find_exclude_override(overrides, employee.id, day, bucket):
        return Eligibility(False, f"exclude override for {day} {bucket}")

    if overlaps_existing(employee.id, day_date, start, end, existing):
        return Eligibility(False, "overlaps an existing assignment")
    if violates_min_rest(employee.id, day_date, start, end, existing, cfg.min_rest_hours):
        return Eligibility(False, f"less than {cfg.min_rest_hours:g}h rest between shifts")

    reason = restriction_blocks(employee, day, start, end)
    if reason:
        return Eligibility(False, reason)

    reason, fixed_window = permanent_rule_check(employee, day, start, end)
    if reason:
        return Eligibility(False, reason)

    hours = calculate_shift_hours(start, end)
    if hours < cfg.min_shift_hours and not is_bartender_qualified(employee, cfg.bartending_threshold):
        return Eligibility(False, f"shift shorter than {cfg.min_shift_hours:g}h minimum")

    if check_availability and not is_available(employee, day, start, end, bucket, slot_label):
        return Eligibility(False, f"not available {day} {start}-{end}")

    return Eligibility(True, fixed_window=fixed_window)
