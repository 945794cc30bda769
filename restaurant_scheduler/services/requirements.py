"""Expansion of the weekly staffing template into dated shifts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    ALL_EMPLOYEES,
    CLOSE_EARLY,
    OPEN_DAYS,
    DayStaffing,
    ScheduleOverride,
    ScheduleWarning,
    Shift,
    StaffingSlot,
    WeeklyStaffingNeeds,
)

from .coverage import solo_slot_indexes
from .labels import is_opener_label, label_implies_bartender, normalize_slot_label
from .timeplan import (
    calculate_shift_hours,
    date_for_day,
    is_valid_time,
    minutes_to_time,
    shift_bucket,
    time_to_minutes,
    week_start_for,
)

logger = logging.getLogger(__name__)


@dataclass
class ExpandedWeek:
    week_start: date
    shifts: List[Shift] = field(default_factory=list)
    closed_days: Set[str] = field(default_factory=set)
    early_close: Dict[str, str] = field(default_factory=dict)
    warnings: List[ScheduleWarning] = field(default_factory=list)

    def shifts_for(self, day: str) -> List[Shift]:
        return [s for s in self.shifts if s.day == day]

    def is_closed(self, day: str) -> bool:
        return day in self.closed_days


def day_prefix(day: str) -> str:
    return day[:3]


def closed_days_from(overrides: Iterable[ScheduleOverride], config: SchedulerConfig) -> Set[str]:
    """Days closed by an all-employees exclude override or by configured business hours."""
    closed = {
        o.day for o in overrides if o.type == "exclude" and o.employee_id == ALL_EMPLOYEES
    }
    closed.update(day for day, hours in config.business_hours.items() if hours.closed)
    return closed


def early_close_from(overrides: Iterable[ScheduleOverride]) -> Dict[str, str]:
    """Earliest early-close time per day from close-early custom_time overrides."""
    closes: Dict[str, str] = {}
    for o in overrides:
        if o.employee_id != CLOSE_EARLY or o.type != "custom_time":
            continue
        if not is_valid_time(o.custom_end_time):
            logger.debug("Ignoring early-close override %s without a valid end time", o.id)
            continue
        current = closes.get(o.day)
        if current is None or time_to_minutes(o.custom_end_time) < time_to_minutes(current):
            closes[o.day] = o.custom_end_time
    return closes


def normalize_day_staffing(
    day: str, staffing: Optional[DayStaffing], config: SchedulerConfig
) -> List[StaffingSlot]:
    """
    Return the day's staffing as slots, folding the legacy morning/night shape.

    Legacy headcounts become one slot per bucket carrying the headcount, using
    the day's own windows when given and the configured defaults otherwise.
    """
    if staffing is None:
        return []
    if staffing.slots:
        return list(staffing.slots)
    if not staffing.is_legacy:
        return []

    prefix = day_prefix(day)
    slots: List[StaffingSlot] = []
    if staffing.morning:
        window = config.morning_shift
        slots.append(
            StaffingSlot(
                id=f"{prefix}-morning",
                start_time=staffing.morning_start or window.start,
                end_time=staffing.morning_end or window.end,
                label="Opener",
                headcount=int(staffing.morning),
            )
        )
    if staffing.night:
        window = config.night_shift
        slots.append(
            StaffingSlot(
                id=f"{prefix}-night",
                start_time=staffing.night_start or window.start,
                end_time=staffing.night_end or window.end,
                label="Dinner",
                headcount=int(staffing.night),
            )
        )
    return slots


def _warn(warnings: List[ScheduleWarning], kind: str, message: str) -> None:
    logger.info(message)
    warnings.append(ScheduleWarning(type=kind, message=message))


def expand_day(
    day: str,
    day_date: date,
    slots: List[StaffingSlot],
    config: SchedulerConfig,
    early_close: Optional[str],
    warnings: List[ScheduleWarning],
) -> List[Shift]:
    hours = config.hours_for(day)
    open_min = time_to_minutes(hours.open) if hours and is_valid_time(hours.open) else None
    close_min = time_to_minutes(hours.close) if hours and is_valid_time(hours.close) else None
    if early_close is not None:
        early = time_to_minutes(early_close)
        close_min = early if close_min is None else min(close_min, early)

    shifts: List[Shift] = []
    seen_ids: Set[str] = set()
    for index, slot in enumerate(slots):
        slot_id = slot.id or f"{day_prefix(day)}-slot-{index + 1}"
        if not (is_valid_time(slot.start_time) and is_valid_time(slot.end_time)):
            _warn(warnings, "coverage_needed", f"Skipped slot {slot_id} on {day}: invalid times")
            continue

        start, end = time_to_minutes(slot.start_time), time_to_minutes(slot.end_time)
        if open_min is not None:
            start = max(start, open_min)
        if close_min is not None:
            if early_close is not None and start >= close_min:
                logger.debug("Dropping slot %s on %s: starts after early close", slot_id, day)
                continue
            end = min(end, close_min)
        if end <= start:
            _warn(warnings, "coverage_needed", f"Skipped slot {slot_id} on {day}: ends before it starts")
            continue

        if slot_id in seen_ids:
            slot_id = f"{slot_id}-{index + 1}"
        seen_ids.add(slot_id)

        start_time, end_time = minutes_to_time(start), minutes_to_time(end)
        label = normalize_slot_label(slot.label, day, start_time, end_time)
        shifts.append(
            Shift(
                id=slot_id,
                day=day,
                date=day_date,
                bucket=shift_bucket(start_time),
                start_time=start_time,
                end_time=end_time,
                duration_hours=calculate_shift_hours(start_time, end_time),
                required_staff=max(1, int(slot.headcount or 1)),
                label=label,
                requires_bartender=label_implies_bartender(label),
                is_opener=is_opener_label(label),
            )
        )

    solo = solo_slot_indexes([(time_to_minutes(s.start_time), time_to_minutes(s.end_time)) for s in shifts])
    for index in solo:
        shifts[index].requires_solo = True
    return shifts


def expand_week(
    week_start: date,
    staffing_needs: WeeklyStaffingNeeds,
    overrides: Iterable[ScheduleOverride],
    config: SchedulerConfig,
) -> ExpandedWeek:
    """
    Expand the weekly template into concrete dated shifts for Tuesday-Sunday.

    Args:
        week_start: Any date in the target week (normalized to Monday)
        staffing_needs: Weekly template
        overrides: Week overrides; only the business-wide markers matter here
        config: SchedulerConfig with default windows and business hours

    Returns:
        ExpandedWeek with shifts, closed days, early-close times and warnings
    """
    overrides = list(overrides)
    week_start = week_start_for(week_start)
    expanded = ExpandedWeek(
        week_start=week_start,
        closed_days=closed_days_from(overrides, config),
        early_close=early_close_from(overrides),
    )

    for day in OPEN_DAYS:
        if day in expanded.closed_days:
            _warn(expanded.warnings, "business_closed", f"Business closed on {day}; no shifts scheduled")
            continue
        early = expanded.early_close.get(day)
        if early:
            _warn(expanded.warnings, "early_close", f"Closing early at {early} on {day}")

        slots = normalize_day_staffing(day, staffing_needs.for_day(day), config)
        day_shifts = expand_day(day, date_for_day(week_start, day), slots, config, early, expanded.warnings)
        expanded.shifts.extend(day_shifts)

    logger.info("Expanded %d shifts for week of %s", len(expanded.shifts), week_start.isoformat())
    return expanded


_RECOMMENDED = {
    "tuesday": [
        ("tue-open", "07:15", "12:00", "Opener"),
        ("tue-noon", "12:00", "16:00", "Mid Shift"),
        ("tue-bar", "16:00", "21:00", "Bar"),
    ],
    "wednesday": [
        ("wed-open", "07:15", "12:00", "Opener"),
        ("wed-noon", "12:00", "16:00", "Mid Shift"),
        ("wed-bar", "16:00", "21:00", "Bar"),
    ],
    "thursday": [
        ("thu-open", "07:15", "12:00", "Opener"),
        ("thu-noon", "12:00", "16:00", "Mid Shift"),
        ("thu-bar", "16:00", "21:00", "Bar"),
    ],
    "friday": [
        ("fri-open", "07:15", "12:00", "Opener"),
        ("fri-10am", "10:00", "14:00", "2nd Server"),
        ("fri-noon", "12:00", "16:00", "Mid Shift"),
        ("fri-bar", "15:00", "21:00", "Bar"),
        ("fri-dinner2", "17:00", "21:00", "Dinner 2"),
    ],
    "saturday": [
        ("sat-open", "07:15", "15:00", "Weekend Opener"),
        ("sat-10am", "10:00", "15:00", "2nd Server"),
        ("sat-bar", "15:00", "21:00", "Bar"),
        ("sat-dinner2", "16:00", "21:00", "Dinner 2"),
        ("sat-dinner3", "17:00", "21:00", "Dinner 3"),
    ],
    "sunday": [
        ("sun-open", "07:15", "14:30", "Weekend Opener"),
        ("sun-2", "08:00", "14:30", "2nd Server"),
        ("sun-3", "09:00", "14:30", "3rd Server"),
    ],
}


def recommended_staffing_needs() -> WeeklyStaffingNeeds:
    """Baseline Tuesday-Sunday template: opener, noon cover and bar, busier at weekends."""
    return WeeklyStaffingNeeds(
        days={
            day: DayStaffing(slots=[StaffingSlot(*row) for row in rows])
            for day, rows in _RECOMMENDED.items()
        }
    )
