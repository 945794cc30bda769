"""Post-fill pass that guarantees a qualified bartender alongside low-skill staff."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Tuple

from restaurant_scheduler.domain.models import Employee, ScheduleAssignment
from restaurant_scheduler.services.coverage import Interval, merge_intervals, subtract_intervals
from restaurant_scheduler.services.labels import is_bartender_qualified, needs_supervision
from restaurant_scheduler.services.requirements import day_prefix
from restaurant_scheduler.services.timeplan import (
    day_for_date,
    minutes_to_time,
    shift_bucket,
    time_to_minutes,
)

from .base import SchedulingPass
from .context import GenerationContext

logger = logging.getLogger(__name__)


def _interval(assignment: ScheduleAssignment) -> Interval:
    return time_to_minutes(assignment.start_time), time_to_minutes(assignment.end_time)


class BartenderGapPass(SchedulingPass):
    """
    For every assignment held by someone who needs a bartender on shift,
    find the minutes not covered by another qualified bartender that date
    and book a bartender for each gap.

    Gap shifts count as bartender coverage straight away, so later employees
    on the same date can lean on them. A gap nobody can cover is recorded as a
    ``no_bartender`` conflict.
    """

    name = "bartender"

    def run(self, ctx: GenerationContext) -> None:
        threshold = ctx.config.bartending_threshold
        self._gap_counts: Dict[Tuple[str, date], int] = defaultdict(int)

        to_check = []
        for a in ctx.assignments:
            emp = ctx.employee(a.employee_id)
            if emp is not None and needs_supervision(emp, threshold):
                to_check.append(a)
        to_check.sort(key=lambda a: (a.date, time_to_minutes(a.start_time), ctx.roster_index(a.employee_id), a.shift_id))

        for assignment in to_check:
            employee = ctx.employee(assignment.employee_id)
            covered = self._bartender_intervals(ctx, assignment.date, exclude=employee.id)
            for gap in subtract_intervals(_interval(assignment), covered):
                self._fill_gap(ctx, employee, assignment, gap)

    def _bartender_intervals(self, ctx: GenerationContext, day_date: date, exclude: str) -> List[Interval]:
        threshold = ctx.config.bartending_threshold
        intervals = []
        for a in ctx.assignments:
            if a.date != day_date or a.employee_id == exclude:
                continue
            emp = ctx.employee(a.employee_id)
            if emp is not None and is_bartender_qualified(emp, threshold):
                intervals.append(_interval(a))
        return merge_intervals(intervals)

    def _candidates(self, ctx: GenerationContext, employee: Employee) -> List[Employee]:
        threshold = ctx.config.bartending_threshold
        pool = [
            e for e in ctx.active_employees()
            if e.id != employee.id and is_bartender_qualified(e, threshold)
        ]
        pool.sort(key=lambda e: (ctx.hours[e.id], ctx.roster_index(e.id)))
        return pool

    def _fill_gap(
        self,
        ctx: GenerationContext,
        employee: Employee,
        assignment: ScheduleAssignment,
        gap: Interval,
    ) -> Optional[ScheduleAssignment]:
        day = day_for_date(assignment.date)
        start, end = minutes_to_time(gap[0]), minutes_to_time(gap[1])

        for bartender in self._candidates(ctx, employee):
            eligibility = ctx.check(
                bartender,
                day,
                assignment.date,
                start,
                end,
                bucket=shift_bucket(start),
                slot_label="Bar",
            )
            if not eligibility.allowed:
                continue
            if eligibility.fixed_window and eligibility.fixed_window != (start, end):
                continue

            key = (employee.id, assignment.date)
            self._gap_counts[key] += 1
            shift_id = f"{day_prefix(day)}-bartender-gap-{employee.id}-{self._gap_counts[key]}"
            placed = ctx.add_assignment(shift_id, bartender.id, assignment.date, start, end)
            if placed:
                ctx.warn(
                    "coverage_needed",
                    f"{bartender.name} added {start}-{end} on {day} to cover bartending for {employee.name}",
                    employee.id,
                )
                return placed

        ctx.conflict(
            "no_bartender",
            assignment.shift_id,
            assignment.date,
            f"No bartender available {start}-{end} on {day} to work with {employee.name}",
        )
        return None
