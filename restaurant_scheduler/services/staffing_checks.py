"""Lint checks for common mistakes in a weekly staffing template."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from restaurant_scheduler.domain.models import OPEN_DAYS, WeeklyStaffingNeeds

from .labels import label_implies_bartender, normalize_slot_label
from .timeplan import is_valid_time, time_to_minutes

DEFAULT_OPEN_TIME = "07:15"
BAR_EARLIEST_START = "12:00"
WEEKDAY_OPENER_LATEST_END = "12:00"
WEEKDAYS = ("tuesday", "wednesday", "thursday", "friday")


@dataclass
class StaffingIssue:
    day: str
    type: str
    message: str


def validate_staffing_needs(
    needs: WeeklyStaffingNeeds,
    open_time_by_day: Optional[Dict[str, str]] = None,
) -> List[StaffingIssue]:
    """
    Flag template patterns that usually produce a bad schedule.

    Issues:
        multiple_openers_at_open: more than one opener slot starts at opening time
        bar_starts_too_early: a Bar slot starts before noon
        opener_ends_too_late: a weekday opener at opening time runs past noon
    """
    open_time_by_day = open_time_by_day or {}
    issues: List[StaffingIssue] = []

    for day in OPEN_DAYS:
        open_time = open_time_by_day.get(day) or DEFAULT_OPEN_TIME
        open_min = time_to_minutes(open_time)
        staffing = needs.for_day(day)
        slots = [
            s for s in (staffing.slots if staffing else [])
            if is_valid_time(s.start_time) and is_valid_time(s.end_time)
        ]
        labelled = [(s, normalize_slot_label(s.label, day, s.start_time, s.end_time)) for s in slots]

        openers_at_open = [
            s for s, label in labelled
            if "opener" in label.lower() and time_to_minutes(s.start_time) == open_min
        ]
        if len(openers_at_open) > 1:
            issues.append(StaffingIssue(
                day,
                "multiple_openers_at_open",
                f"More than one opener starts at {open_time} on {day}; two openers would be scheduled.",
            ))

        if any(
            label_implies_bartender(label)
            and time_to_minutes(s.start_time) < time_to_minutes(BAR_EARLIEST_START)
            for s, label in labelled
        ):
            issues.append(StaffingIssue(
                day,
                "bar_starts_too_early",
                f"Bar starts before noon on {day}; rename or move the slot if no morning bar is needed.",
            ))

        if day in WEEKDAYS:
            opener = next(
                (s for s, label in labelled if label == "Opener" and time_to_minutes(s.start_time) == open_min),
                None,
            )
            if opener and time_to_minutes(opener.end_time) > time_to_minutes(WEEKDAY_OPENER_LATEST_END):
                issues.append(StaffingIssue(
                    day,
                    "opener_ends_too_late",
                    f"Opener on {day} ends at {opener.end_time}; shorten it if the opener should be done by noon.",
                ))

    return issues
