"""CSV import/export of schedule assignments."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from restaurant_scheduler.domain.models import Employee, ScheduleAssignment, WeeklySchedule
from restaurant_scheduler.services.timeplan import (
    calculate_shift_hours,
    day_for_date,
    parse_time_string,
    shift_bucket,
)

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = ["date", "day", "shift_id", "employee_id", "employee_name", "start_time", "end_time", "hours", "bucket"]


def assignments_dataframe(
    schedule: WeeklySchedule, employees: Optional[Iterable[Employee]] = None
) -> pd.DataFrame:
    """One row per assignment, with day, bucket, hours and the employee's name."""
    names = {e.id: e.name for e in employees or []}
    rows = [
        {
            "date": a.date,
            "day": day_for_date(a.date),
            "shift_id": a.shift_id,
            "employee_id": a.employee_id,
            "employee_name": names.get(a.employee_id, a.employee_id),
            "start_time": a.start_time,
            "end_time": a.end_time,
            "hours": calculate_shift_hours(a.start_time, a.end_time),
            "bucket": shift_bucket(a.start_time),
        }
        for a in schedule.assignments
    ]
    return pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)


def export_assignments_csv(
    schedule: WeeklySchedule,
    csv_path: str | Path,
    employees: Optional[Iterable[Employee]] = None,
) -> int:
    """
    Write a schedule's assignments to CSV.

    Returns:
        Number of rows written
    """
    df = assignments_dataframe(schedule, employees)
    df["date"] = df["date"].map(lambda d: d.isoformat())
    df.to_csv(csv_path, index=False)
    logger.info("Exported %d assignments to %s", len(df), csv_path)
    return len(df)


def import_assignments_csv(csv_path: str | Path) -> List[ScheduleAssignment]:
    """
    Read assignments back from CSV, e.g. as the prior snapshot for locked shifts.

    Raises:
        ValueError: If required columns are missing or a row is malformed
    """
    df = pd.read_csv(csv_path, dtype=str)
    df.columns = df.columns.str.lower().str.strip()

    required = {"shift_id", "employee_id", "date", "start_time", "end_time"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {sorted(missing)}")

    df["date"] = pd.to_datetime(df["date"], errors="raise").dt.date

    assignments = []
    for index, row in df.iterrows():
        for col in ("start_time", "end_time"):
            try:
                parse_time_string(row[col])
            except ValueError as exc:
                raise ValueError(f"{csv_path} row {index + 2}: {col} {exc}") from exc
        assignments.append(
            ScheduleAssignment(
                shift_id=str(row["shift_id"]),
                employee_id=str(row["employee_id"]),
                date=row["date"],
                start_time=str(row["start_time"]).strip(),
                end_time=str(row["end_time"]).strip(),
            )
        )
    logger.info("Imported %d assignments from %s", len(assignments), csv_path)
    return assignments
