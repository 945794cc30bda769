"""Candidate ranking for greedy slot filling.

Every component returns a number where lower is better; ``candidate_rank_key``
stacks them into a tuple so plain ``sorted`` gives the fill order.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import Employee, ScheduleOverride, Shift

from .labels import has_bar_affinity, is_bartender_qualified


def prioritize_rank(employee: Employee, shift: Shift, overrides: Iterable[ScheduleOverride]) -> int:
    for override in overrides:
        if (
            override.type == "prioritize"
            and override.employee_id == employee.id
            and override.day == shift.day
            and override.matches_bucket(shift.bucket)
        ):
            return 0
    return 1


def opener_affinity(employee: Employee, shift: Shift) -> Tuple[int, int]:
    """
    Affinity for an opener slot. Never a hard block.

    Returns:
        (tier, tiebreak): canOpen on a listed open day is tier 0, canOpen on
        any other day tier 1, everyone else tier 2 ranked by combined skill
    """
    prefs = employee.preferences
    if prefs.can_open and shift.day in prefs.open_days:
        return 0, 0
    if prefs.can_open:
        return 1, 0
    return 2, -(employee.bartending_scale + employee.alone_scale)


def bar_affinity(employee: Employee, shift: Shift, config: SchedulerConfig) -> Tuple[int, int]:
    if has_bar_affinity(employee, shift.day):
        return 0, 0
    if is_bartender_qualified(employee, config.bartending_threshold):
        return 1, 0
    return 2, 0


def role_affinity(employee: Employee, shift: Shift, config: SchedulerConfig) -> Tuple[int, int]:
    if shift.is_opener:
        return opener_affinity(employee, shift)
    if shift.requires_bartender:
        return bar_affinity(employee, shift, config)
    return 0, 0


def solo_rank(employee: Employee, shift: Shift, config: SchedulerConfig) -> int:
    if not shift.requires_solo:
        return 0
    return 0 if employee.alone_scale >= config.alone_threshold else 1


def shift_deficit(employee: Employee, shift_count: int) -> int:
    """How many shifts the employee is still short of their weekly minimum."""
    if not employee.min_shifts_per_week:
        return 0
    return max(0, employee.min_shifts_per_week - shift_count)


def preference_rank(employee: Employee, shift: Shift) -> int:
    return 0 if employee.preferences.prefers(shift.bucket) else 1


def candidate_rank_key(
    employee: Employee,
    shift: Shift,
    *,
    overrides: Iterable[ScheduleOverride],
    config: SchedulerConfig,
    hours: float,
    shift_count: int,
    roster_index: int,
) -> tuple:
    """
    Sort key for a candidate who already passed the constraint checks.

    Order: prioritize override, slot-role affinity, solo capability,
    minimum-shift deficit (larger first), bucket preference, fewest hours,
    then roster position so equal candidates keep input order.
    """
    tier, tiebreak = role_affinity(employee, shift, config)
    return (
        prioritize_rank(employee, shift, overrides),
        tier,
        tiebreak,
        solo_rank(employee, shift, config),
        -shift_deficit(employee, shift_count),
        preference_rank(employee, shift),
        hours,
        roster_index,
    )
