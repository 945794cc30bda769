"""Greedy fill of remaining staffing-slot capacity."""

from __future__ import annotations

import logging
from typing import List

from restaurant_scheduler.domain.models import OPEN_DAYS, Shift
from restaurant_scheduler.services.scoring import candidate_rank_key
from restaurant_scheduler.services.timeplan import time_to_minutes

from .base import SchedulingPass
from .context import GenerationContext

logger = logging.getLogger(__name__)


def fill_order(shifts: List[Shift]) -> List[Shift]:
    """Bar slots first so bar staff are not used up on dinner, then by start time."""
    indexed = list(enumerate(shifts))
    indexed.sort(key=lambda item: (not item[1].requires_bartender, time_to_minutes(item[1].start_time), item[0]))
    return [shift for _, shift in indexed]


class GreedyFillPass(SchedulingPass):
    """
    Fill each still-understaffed shift with the best-ranked eligible employees.

    Days run Tuesday to Sunday. Candidates must pass every constraint check;
    ranking is ``services.scoring.candidate_rank_key``. Any headcount left
    over becomes a ``no_coverage`` conflict.
    """

    name = "greedy"

    def run(self, ctx: GenerationContext) -> None:
        for day in OPEN_DAYS:
            if ctx.is_closed(day):
                continue
            for shift in fill_order(ctx.shifts_for(day)):
                self.fill_shift(ctx, shift)

    def fill_shift(self, ctx: GenerationContext, shift: Shift) -> int:
        needed = ctx.remaining(shift)
        if needed <= 0:
            return 0

        ranked = []
        for employee in ctx.active_employees():
            if ctx.has_key(employee.id, shift.date, shift.id):
                continue
            eligibility = ctx.check_shift(employee, shift)
            if not eligibility.allowed:
                logger.debug("%s not eligible for %s: %s", employee.id, shift.id, eligibility.reason)
                continue
            if eligibility.fixed_window and eligibility.fixed_window != (shift.start_time, shift.end_time):
                logger.debug("%s held to fixed window %s on %s", employee.id, eligibility.fixed_window, shift.day)
                continue
            key = candidate_rank_key(
                employee,
                shift,
                overrides=ctx.overrides,
                config=ctx.config,
                hours=ctx.hours[employee.id],
                shift_count=ctx.shift_counts[employee.id],
                roster_index=ctx.roster_index(employee.id),
            )
            ranked.append((key, employee))
        ranked.sort(key=lambda item: item[0])

        placed = 0
        for _, employee in ranked[:needed]:
            if ctx.add_assignment(shift.id, employee.id, shift.date, shift.start_time, shift.end_time):
                ctx.consume(shift)
                placed += 1

        if placed < needed:
            found = shift.required_staff - ctx.remaining(shift)
            ctx.conflict(
                "no_coverage",
                shift.id,
                shift.date,
                f"Need {shift.required_staff} staff for {shift.label} on {shift.day}, only found {found}",
            )
        return placed
