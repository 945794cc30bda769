"""Passes that place pinned, recurring and manager-forced shifts ahead of greedy fill."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from restaurant_scheduler.domain.models import Employee, ScheduleOverride, Shift
from restaurant_scheduler.services.constraints import (
    find_exclude_override,
    is_excluded_on,
    overlaps_existing,
)
from restaurant_scheduler.services.coverage import subtract_intervals
from restaurant_scheduler.services.labels import has_bar_affinity
from restaurant_scheduler.services.requirements import day_prefix
from restaurant_scheduler.services.timeplan import (
    calculate_shift_hours,
    date_for_day,
    day_for_date,
    intervals_overlap,
    is_valid_time,
    minutes_to_time,
    morning_or_night,
    shift_bucket,
    time_to_minutes,
)

from .base import SchedulingPass
from .context import GenerationContext

logger = logging.getLogger(__name__)


def truncate_to_close(ctx: GenerationContext, day: str, start: str, end: str) -> Optional[Tuple[str, str]]:
    """Apply the day's early close; None when the shift starts at or after it."""
    close = ctx.early_close(day)
    if close is None:
        return start, end
    if time_to_minutes(start) >= time_to_minutes(close):
        return None
    if time_to_minutes(end) > time_to_minutes(close):
        end = close
    return start, end


def slot_order(shift: Shift) -> Tuple[int, int]:
    return time_to_minutes(shift.start_time), time_to_minutes(shift.end_time)


class LockedShiftPass(SchedulingPass):
    """Re-admit operator-pinned shifts from the prior assignment snapshot."""

    name = "locked"

    def run(self, ctx: GenerationContext) -> None:
        for lock in ctx.locked_shifts:
            employee = ctx.employee(lock.employee_id)
            label = f"{lock.employee_id} {lock.day} {lock.shift_type}"
            if employee is None or not employee.is_active:
                ctx.warn("lock_dropped", f"Dropped lock {label}: employee inactive or unknown", lock.employee_id)
                continue
            if ctx.is_closed(lock.day):
                ctx.warn("lock_dropped", f"Dropped lock {label}: business closed", employee.id)
                continue
            day_date = date_for_day(ctx.week_start, lock.day)
            if is_excluded_on(employee, day_date):
                ctx.warn("lock_dropped", f"Dropped lock {label}: {employee.name} is excluded that day", employee.id)
                continue

            matches = [
                a for a in ctx.prior_assignments
                if a.employee_id == employee.id
                and day_for_date(a.date) == lock.day
                and morning_or_night(a.start_time) == lock.shift_type
            ]
            if not matches:
                ctx.warn("lock_dropped", f"Dropped lock {label}: no prior assignment to keep", employee.id)
                continue

            for prior in matches:
                if overlaps_existing(employee.id, day_date, prior.start_time, prior.end_time, ctx.assignments):
                    ctx.warn("lock_dropped", f"Dropped lock {label}: overlaps another locked shift", employee.id)
                    continue
                if ctx.add_assignment(prior.shift_id, employee.id, day_date, prior.start_time, prior.end_time):
                    shift = ctx.shift_by_id(prior.shift_id, day_date)
                    if shift is not None:
                        ctx.consume(shift)
                    logger.debug("Locked %s on %s %s-%s", employee.id, day_date, prior.start_time, prior.end_time)


class FixedSchedulePass(SchedulingPass):
    """Place set-schedule entries and fixed-shift permanent rules."""

    name = "fixed"

    def _entries(self, ctx: GenerationContext, employee: Employee) -> List[tuple]:
        """(kind, day, start, end, bucket) for every recurring entry the employee has."""
        entries = []
        for rule in employee.permanent_rules:
            if rule.type != "fixed_shift" or not rule.is_active:
                continue
            if not (is_valid_time(rule.start_time) and is_valid_time(rule.end_time)):
                continue
            for day in rule.rule_days():
                entries.append(("fixed", day, rule.start_time, rule.end_time, shift_bucket(rule.start_time)))

        for entry in employee.set_schedule:
            start, end = entry.start_time, entry.end_time
            if not (is_valid_time(start) and is_valid_time(end)):
                slot = next(
                    (s for s in sorted(ctx.shifts_for(entry.day), key=slot_order)
                     if s.bucket == entry.shift_type and ctx.remaining(s) > 0),
                    None,
                )
                if slot is not None:
                    start, end = slot.start_time, slot.end_time
                else:
                    window = ctx.config.default_window(entry.shift_type)
                    start, end = window.start, window.end
            entries.append(("set", entry.day, start, end, entry.shift_type))
        return entries

    def _attach(self, ctx: GenerationContext, employee: Employee, day: str, start: str, end: str) -> Optional[Shift]:
        open_slots = [s for s in ctx.shifts_for(day) if ctx.remaining(s) > 0]
        bar_affine = has_bar_affinity(employee, day)

        identical = [s for s in open_slots if s.start_time == start and s.end_time == end]
        if bar_affine:
            identical.sort(key=lambda s: not s.requires_bartender)
        if identical:
            return identical[0]

        if bar_affine:
            s0, e0 = time_to_minutes(start), time_to_minutes(end)
            for slot in open_slots:
                if slot.requires_bartender and intervals_overlap(s0, e0, *slot_order(slot)):
                    return slot
        return None

    def run(self, ctx: GenerationContext) -> None:
        for employee in ctx.active_employees():
            for kind, day, start, end, bucket in self._entries(ctx, employee):
                if ctx.is_closed(day):
                    continue
                day_date = date_for_day(ctx.week_start, day)
                if is_excluded_on(employee, day_date):
                    logger.debug("Skipping %s shift for %s on %s: excluded", kind, employee.id, day)
                    continue
                if kind == "set":
                    day_avail = employee.day_availability(day)
                    if not day_avail or not day_avail.available:
                        logger.debug("Skipping set schedule for %s on %s: unavailable", employee.id, day)
                        continue
                if find_exclude_override(ctx.overrides, employee.id, day, shift_bucket(start)):
                    logger.debug("Skipping %s shift for %s on %s: exclude override", kind, employee.id, day)
                    continue

                window = truncate_to_close(ctx, day, start, end)
                if window is None:
                    continue
                start, end = window
                if overlaps_existing(employee.id, day_date, start, end, ctx.assignments):
                    logger.debug("Skipping %s shift for %s on %s: overlaps", kind, employee.id, day)
                    continue

                slot = self._attach(ctx, employee, day, start, end)
                if slot is not None:
                    shift_id = f"{slot.id}-{kind}-{employee.id}"
                elif kind == "fixed":
                    shift_id = f"{day_prefix(day)}-fixed-{employee.id}"
                else:
                    shift_id = f"{day_prefix(day)}-set-{employee.id}-{bucket}"
                base_id, n = shift_id, 2
                while ctx.has_key(employee.id, day_date, shift_id):
                    shift_id = f"{base_id}-{n}"
                    n += 1

                if ctx.add_assignment(shift_id, employee.id, day_date, start, end):
                    if slot is not None:
                        ctx.consume(slot)
                    logger.debug("Placed %s shift %s for %s", kind, shift_id, employee.id)


class OverridePass(SchedulingPass):
    """Apply explicit assign and custom_time overrides. They bypass weekly availability only."""

    name = "overrides"

    def run(self, ctx: GenerationContext) -> None:
        for override in ctx.overrides:
            if override.is_business_wide or override.type not in ("assign", "custom_time"):
                continue
            employee = ctx.employee(override.employee_id)
            if employee is None:
                logger.info("Override %s names unknown employee %s", override.id, override.employee_id)
                continue
            if ctx.is_closed(override.day):
                continue
            if override.type == "assign":
                self._assign(ctx, employee, override)
            else:
                self._custom_time(ctx, employee, override)

    def _assign(self, ctx: GenerationContext, employee: Employee, override: ScheduleOverride) -> None:
        day_date = date_for_day(ctx.week_start, override.day)
        if any(override.matches_bucket(shift_bucket(a.start_time)) for a in ctx.assignments_on(employee.id, day_date)):
            return

        slots = [
            s for s in sorted(ctx.shifts_for(override.day), key=slot_order)
            if override.matches_bucket(s.bucket) and ctx.remaining(s) > 0
        ]
        for slot in slots:
            eligibility = ctx.check_shift(employee, slot, check_availability=False)
            if not eligibility.allowed:
                continue
            start, end = slot.start_time, slot.end_time
            if eligibility.fixed_window and eligibility.fixed_window != (start, end):
                start, end = eligibility.fixed_window
                if overlaps_existing(employee.id, day_date, start, end, ctx.assignments):
                    continue
            if ctx.add_assignment(slot.id, employee.id, day_date, start, end):
                ctx.consume(slot)
                logger.debug("Override %s assigned %s to %s", override.id, employee.id, slot.id)
            return

        if slots:
            logger.info("Override %s: %s cannot take any %s slot", override.id, employee.id, override.day)
            return

        # Nothing in the template for this bucket; place a standalone shift
        bucket = override.shift_type if override.shift_type != "any" else "morning"
        window = ctx.config.default_window(bucket)
        times = truncate_to_close(ctx, override.day, window.start, window.end)
        if times is None:
            return
        eligibility = ctx.check(employee, override.day, day_date, *times, bucket=bucket, check_availability=False)
        if eligibility.allowed:
            ctx.add_assignment(f"{day_prefix(override.day)}-assign-{employee.id}-{bucket}", employee.id, day_date, *times)

    def _custom_time(self, ctx: GenerationContext, employee: Employee, override: ScheduleOverride) -> None:
        day = override.day
        day_date = date_for_day(ctx.week_start, day)
        hours = ctx.config.hours_for(day)
        start = override.custom_start_time or (hours.open if hours else ctx.config.default_open)
        end = override.custom_end_time or (hours.close if hours else ctx.config.default_close)
        if not (is_valid_time(start) and is_valid_time(end)) or time_to_minutes(end) <= time_to_minutes(start):
            logger.info("Override %s has an unusable time window %s-%s", override.id, start, end)
            return
        times = truncate_to_close(ctx, day, start, end)
        if times is None:
            return
        start, end = times
        bucket = shift_bucket(start)

        eligibility = ctx.check(employee, day, day_date, start, end, bucket=bucket, check_availability=False)
        if not eligibility.allowed:
            logger.info("Override %s blocked for %s: %s", override.id, employee.id, eligibility.reason)
            return

        s0, e0 = time_to_minutes(start), time_to_minutes(end)
        slot = next(
            (s for s in sorted(ctx.shifts_for(day), key=slot_order)
             if ctx.remaining(s) > 0 and not s.synthetic and intervals_overlap(s0, e0, *slot_order(s))),
            None,
        )
        if slot is None:
            ctx.add_assignment(f"{day_prefix(day)}-custom-{employee.id}-{bucket}", employee.id, day_date, start, end)
            return

        if not ctx.add_assignment(slot.id, employee.id, day_date, start, end):
            return
        ctx.consume(slot)

        remainders = subtract_intervals(slot_order(slot), [(s0, e0)])
        taken = sum(
            1 for s in ctx.expanded.shifts if s.date == day_date and s.id.startswith(f"{slot.id}-cover-")
        )
        for n, (r0, r1) in enumerate(remainders, start=taken + 1):
            r_start, r_end = minutes_to_time(r0), minutes_to_time(r1)
            cover = Shift(
                id=f"{slot.id}-cover-{n}",
                day=day,
                date=day_date,
                bucket=shift_bucket(r_start),
                start_time=r_start,
                end_time=r_end,
                duration_hours=calculate_shift_hours(r_start, r_end),
                label=slot.label,
                requires_bartender=slot.requires_bartender,
                is_opener=slot.is_opener and r0 == slot_order(slot)[0],
                synthetic=True,
            )
            ctx.add_shift(cover)
            ctx.warn(
                "coverage_needed",
                f"{employee.name} works {start}-{end} on {day}; {slot.label} still needs cover {r_start}-{r_end}",
                employee.id,
            )
