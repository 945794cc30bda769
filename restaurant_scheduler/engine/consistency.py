"""Final sweep: enforce closures, verify overrides, and report hour warnings."""

from __future__ import annotations

import logging
from dataclasses import replace

from restaurant_scheduler.services.timeplan import (
    date_for_day,
    day_for_date,
    shift_bucket,
    time_to_minutes,
)

from .base import SchedulingPass
from .context import GenerationContext

logger = logging.getLogger(__name__)


class ConsistencyPass(SchedulingPass):
    """
    Run last. Drops assignments on closed days or for inactive/unknown staff,
    clips everything to an early close, records a ``rule_violation`` for any
    override the result does not honor, then adds weekly hour warnings.
    """

    name = "consistency"

    def run(self, ctx: GenerationContext) -> None:
        self.enforce_closures(ctx)
        self.verify_overrides(ctx)
        self.report_hours(ctx)
        ctx.sort_assignments()

    def enforce_closures(self, ctx: GenerationContext) -> None:
        kept = []
        for a in ctx.assignments:
            day = day_for_date(a.date)
            employee = ctx.employee(a.employee_id)
            if employee is None or not employee.is_active:
                logger.debug("Dropping %s: employee %s inactive or unknown", a.shift_id, a.employee_id)
                continue
            if ctx.is_closed(day):
                logger.debug("Dropping %s on closed %s", a.shift_id, day)
                continue
            close = ctx.early_close(day)
            if close is not None:
                if time_to_minutes(a.start_time) >= time_to_minutes(close):
                    logger.debug("Dropping %s: starts after early close %s", a.shift_id, close)
                    continue
                if time_to_minutes(a.end_time) > time_to_minutes(close):
                    a = replace(a, end_time=close)
            kept.append(a)
        ctx.replace_assignments(kept)

    def verify_overrides(self, ctx: GenerationContext) -> None:
        for override in ctx.overrides:
            if override.is_business_wide or override.type not in ("assign", "exclude", "custom_time"):
                continue
            day_date = date_for_day(ctx.week_start, override.day)
            matching = [
                a for a in ctx.assignments_on(override.employee_id, day_date)
                if override.matches_bucket(shift_bucket(a.start_time))
            ]
            employee = ctx.employee(override.employee_id)
            who = employee.name if employee else override.employee_id

            if override.type == "exclude" and matching:
                ctx.conflict(
                    "rule_violation",
                    matching[0].shift_id,
                    day_date,
                    f"{who} is excluded on {override.day} ({override.shift_type}) but is scheduled",
                )
            elif override.type in ("assign", "custom_time") and not matching:
                ctx.conflict(
                    "rule_violation",
                    f"override-{override.id}",
                    day_date,
                    f"Could not {override.type.replace('_', ' ')} {who} on {override.day} ({override.shift_type})",
                )

    def report_hours(self, ctx: GenerationContext) -> None:
        cfg = ctx.config
        for employee in ctx.active_employees():
            count = ctx.shift_counts[employee.id]
            hours = ctx.hours[employee.id]
            if employee.min_shifts_per_week and count < employee.min_shifts_per_week:
                ctx.warn(
                    "under_hours",
                    f"{employee.name} has {count} shifts, below their minimum of {employee.min_shifts_per_week}",
                    employee.id,
                )
            if hours > cfg.overtime_threshold_hours:
                ctx.warn(
                    "overtime",
                    f"{employee.name} is scheduled {hours:.1f}h, over {cfg.overtime_threshold_hours:g}h",
                    employee.id,
                )
            elif hours >= cfg.overtime_threshold_hours - cfg.approaching_overtime_margin_hours and hours > 0:
                ctx.warn(
                    "approaching_limit",
                    f"{employee.name} is scheduled {hours:.1f}h, close to {cfg.overtime_threshold_hours:g}h",
                    employee.id,
                )
