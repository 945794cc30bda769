"""Orchestrator - runs the scheduling passes in precedence order to build a week."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    Employee,
    LockedShift,
    ScheduleAssignment,
    ScheduleOverride,
    WeeklySchedule,
    WeeklyStaffingNeeds,
)
from restaurant_scheduler.domain.repositories import ScheduleRepository
from restaurant_scheduler.services.requirements import expand_week
from restaurant_scheduler.services.timeplan import week_start_for

from .assignment import GreedyFillPass
from .bartender import BartenderGapPass
from .base import SchedulingPass
from .consistency import ConsistencyPass
from .context import GenerationContext
from .precedence import FixedSchedulePass, LockedShiftPass, OverridePass

logger = logging.getLogger(__name__)


def default_passes() -> List[SchedulingPass]:
    """Locks, fixed schedules, overrides, greedy fill, bartender gaps, final sweep."""
    return [
        LockedShiftPass(),
        FixedSchedulePass(),
        OverridePass(),
        GreedyFillPass(),
        BartenderGapPass(),
        ConsistencyPass(),
    ]


class Orchestrator:
    """
    Orchestrator runs the scheduling passes over one shared context.

    Earlier passes win: anything they place is an existing commitment for
    every later pass. The result is a pure function of the inputs.
    """

    def __init__(self, passes: Optional[List[SchedulingPass]] = None):
        """
        Args:
            passes: Passes to run in order (default: ``default_passes()``)
        """
        self.passes = passes if passes is not None else default_passes()

    def build_schedule(
        self,
        week_start: date,
        employees: Iterable[Employee],
        staffing_needs: WeeklyStaffingNeeds,
        overrides: Iterable[ScheduleOverride] = (),
        config: Optional[SchedulerConfig] = None,
        locked_shifts: Iterable[LockedShift] = (),
        prior_assignments: Iterable[ScheduleAssignment] = (),
    ) -> WeeklySchedule:
        """
        Build the schedule for the week containing ``week_start``.

        Args:
            week_start: Any date in the target week (normalized to Monday)
            employees: Roster snapshot; roster order breaks ranking ties
            staffing_needs: Weekly staffing template
            overrides: Manager overrides for this week
            config: SchedulerConfig (defaults when omitted)
            locked_shifts: Pins to re-admit from ``prior_assignments``
            prior_assignments: Earlier assignment snapshot the locks refer to

        Returns:
            WeeklySchedule with assignments, conflicts and warnings
        """
        cfg = config or SchedulerConfig()
        overrides = list(overrides)
        expanded = expand_week(week_start, staffing_needs, overrides, cfg)
        logger.info("Orchestrator: building schedule for week of %s", expanded.week_start.isoformat())

        ctx = GenerationContext(
            expanded,
            employees,
            overrides,
            cfg,
            locked_shifts=locked_shifts,
            prior_assignments=prior_assignments,
        )
        for scheduling_pass in self.passes:
            before = len(ctx.assignments)
            scheduling_pass.run(ctx)
            logger.info(
                "%s pass: %d assignments (%+d)",
                scheduling_pass.get_pass_name(),
                len(ctx.assignments),
                len(ctx.assignments) - before,
            )

        logger.info(
            "Orchestrator: %d assignments, %d conflicts, %d warnings",
            len(ctx.assignments),
            len(ctx.conflicts),
            len(ctx.warnings),
        )
        return WeeklySchedule(
            week_start=ctx.week_start,
            assignments=list(ctx.assignments),
            conflicts=list(ctx.conflicts),
            warnings=list(ctx.warnings),
        )


def generate_schedule(
    week_start: date,
    employees: Iterable[Employee],
    staffing_needs: WeeklyStaffingNeeds,
    overrides: Iterable[ScheduleOverride] = (),
    config: Optional[SchedulerConfig] = None,
    locked_shifts: Iterable[LockedShift] = (),
    prior_assignments: Iterable[ScheduleAssignment] = (),
) -> WeeklySchedule:
    """Generate a week with the default pass order."""
    return Orchestrator().build_schedule(
        week_start,
        employees,
        staffing_needs,
        overrides=overrides,
        config=config,
        locked_shifts=locked_shifts,
        prior_assignments=prior_assignments,
    )


def build_week_schedule(
    week_start: date,
    employees: Iterable[Employee],
    staffing_needs: WeeklyStaffingNeeds,
    overrides: Iterable[ScheduleOverride] = (),
    config: Optional[SchedulerConfig] = None,
    locked_shifts: Iterable[LockedShift] = (),
    session: Optional[Session] = None,
    persist: bool = False,
) -> WeeklySchedule:
    """
    Generate a week, using the stored schedule as the lock snapshot.

    Args:
        week_start: Any date in the target week
        employees: Roster snapshot
        staffing_needs: Weekly staffing template
        overrides: Manager overrides
        config: SchedulerConfig
        locked_shifts: Pins to keep from the stored schedule
        session: Database session; needed for locks and for ``persist``
        persist: If True, save the result as this week's draft

    Returns:
        The generated WeeklySchedule
    """
    prior: List[ScheduleAssignment] = []
    if session is not None:
        stored = ScheduleRepository.get_by_week(session, week_start_for(week_start))
        if stored is not None:
            prior = stored.assignments
            logger.info("Loaded %d stored assignments as lock snapshot", len(prior))

    schedule = generate_schedule(
        week_start,
        employees,
        staffing_needs,
        overrides=overrides,
        config=config,
        locked_shifts=locked_shifts,
        prior_assignments=prior,
    )

    if persist:
        if session is None:
            raise ValueError("persist=True needs a database session")
        ScheduleRepository.save(session, schedule, status="draft")
        logger.info("Persisted %d assignments for week of %s", len(schedule.assignments), schedule.week_start)

    return schedule
