"""Post-generation validation and reporting for weekly schedules."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .config import SchedulerConfig
from .domain.models import OPEN_DAYS, Employee, ScheduleOverride, WeeklySchedule
from .io.export_csv import assignments_dataframe
from .services.requirements import closed_days_from, early_close_from
from .services.timeplan import time_to_minutes

logger = logging.getLogger(__name__)


def validate_schedule(
    schedule: WeeklySchedule,
    employees: Iterable[Employee],
    overrides: Iterable[ScheduleOverride] = (),
    config: Optional[SchedulerConfig] = None,
) -> None:
    """
    Check a schedule against the hard invariants.

    Args:
        schedule: WeeklySchedule to check
        employees: Roster the schedule was built from
        overrides: Overrides used for generation (closures, early close)
        config: SchedulerConfig (business-hours closures)

    Raises:
        ValueError: On the first broken invariant
    """
    cfg = config or SchedulerConfig()
    overrides = list(overrides)
    roster = {e.id: e for e in employees}
    df = assignments_dataframe(schedule, roster.values())
    if df.empty:
        return

    # Referential integrity and active flag
    unknown = sorted(set(df["employee_id"]) - set(roster))
    if unknown:
        raise ValueError(f"Assignments reference unknown employee ids: {unknown}")
    inactive = sorted({eid for eid in df["employee_id"] if not roster[eid].is_active})
    if inactive:
        raise ValueError(f"Assignments for inactive employees: {inactive}")

    dupes = df[df.duplicated(subset=["employee_id", "date", "shift_id"], keep=False)]
    if not dupes.empty:
        row = dupes.iloc[0]
        raise ValueError(f"Duplicate assignment {row['shift_id']} for {row['employee_id']} on {row['date']}")

    # Closed and early-close days
    closed = closed_days_from(overrides, cfg) | (set(df["day"]) - set(OPEN_DAYS))
    on_closed = df[df["day"].isin(closed)]
    if not on_closed.empty:
        row = on_closed.iloc[0]
        raise ValueError(f"Assignment {row['shift_id']} on closed day {row['day']} ({row['date']})")

    for day, close in early_close_from(overrides).items():
        close_min = time_to_minutes(close)
        day_rows = df[df["day"] == day]
        late = day_rows[day_rows["end_time"].map(time_to_minutes) > close_min]
        if not late.empty:
            raise ValueError(f"Assignment {late.iloc[0]['shift_id']} on {day} runs past early close {close}")

    # No overlaps per employee per date
    ts = df.copy()
    ts["start_min"] = ts["start_time"].map(time_to_minutes)
    ts["end_min"] = ts["end_time"].map(time_to_minutes)
    bad_length = ts[ts["end_min"] <= ts["start_min"]]
    if not bad_length.empty:
        raise ValueError(f"Assignment {bad_length.iloc[0]['shift_id']} ends before it starts")
    ts = ts.sort_values(["employee_id", "date", "start_min"])
    ts["prev_end"] = ts.groupby(["employee_id", "date"])["end_min"].shift()
    overlaps = ts[ts["prev_end"].notna() & (ts["start_min"] < ts["prev_end"])]
    if not overlaps.empty:
        row = overlaps.iloc[0]
        raise ValueError(
            f"Employee {row['employee_id']} has overlapping assignments on {row['date']}: "
            f"{row['shift_id']} starts {row['start_time']}"
        )

    logger.info("Schedule for week of %s validated: %d assignments", schedule.week_start, len(df))


def summarize_schedule(schedule: WeeklySchedule, employees: Iterable[Employee] = ()) -> str:
    """Human-readable coverage, hours and diagnostics tables."""
    df = assignments_dataframe(schedule, employees)
    if df.empty:
        lines = ["No assignments."]
    else:
        coverage = df.groupby(["date", "bucket"]).size().unstack(fill_value=0)
        hours = (
            df.groupby("employee_name")
            .agg(shifts=("shift_id", "count"), hours=("hours", "sum"))
            .sort_values("hours", ascending=False)
        )
        lines = ["Coverage per day per bucket:", coverage.to_string(), ""]
        lines += ["Hours per employee (week):", hours.to_string()]

    if schedule.conflicts:
        conflicts = pd.DataFrame([vars(c) for c in schedule.conflicts])
        lines += ["", "Conflicts by type:", conflicts.groupby("type").size().to_string()]
    if schedule.warnings:
        warnings = pd.DataFrame([vars(w) for w in schedule.warnings])
        lines += ["", "Warnings by type:", warnings.groupby("type").size().to_string()]
    return "\n".join(lines)


def schedule_to_grid(
    schedule: WeeklySchedule, employees: Iterable[Employee] = ()
) -> Dict[str, Dict[str, List[str]]]:
    """Day -> bucket -> employee names, for Tuesday through Sunday."""
    grid: Dict[str, Dict[str, List[str]]] = {
        day: {"morning": [], "mid": [], "night": []} for day in OPEN_DAYS
    }
    df = assignments_dataframe(schedule, employees)
    for _, row in df.iterrows():
        names = grid.get(row["day"], {}).get(row["bucket"])
        if names is not None and row["employee_name"] not in names:
            names.append(row["employee_name"])
    return grid
