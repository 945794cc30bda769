from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path

from .config import SchedulerConfig, load_config
from .domain.db import DEFAULT_DB_URL, get_session
from .domain.models import WeeklySchedule
from .domain.repositories import ScheduleRepository
from .engine.orchestrator import build_week_schedule, generate_schedule
from .io.export_csv import export_assignments_csv, import_assignments_csv
from .io.loaders import (
    load_employees,
    load_locked_shifts,
    load_overrides,
    load_staffing_needs,
    parse_date,
)
from .services.requirements import recommended_staffing_needs
from .services.staffing_checks import validate_staffing_needs
from .services.timeplan import week_start_for
from .validator import summarize_schedule, validate_schedule


def _config(args: argparse.Namespace) -> SchedulerConfig:
    return load_config(args.config) if args.config else SchedulerConfig()


def _staffing(args: argparse.Namespace):
    if args.staffing:
        return load_staffing_needs(args.staffing)
    print("[INFO] No staffing file given; using the recommended template")
    return recommended_staffing_needs()


def _schedule_from_csv(path: str, week: date | None = None) -> WeeklySchedule:
    assignments = import_assignments_csv(path)
    if week is None:
        week = min((a.date for a in assignments), default=date.today())
    return WeeklySchedule(week_start=week_start_for(week), assignments=assignments)


def _cmd_generate(args: argparse.Namespace) -> None:
    cfg = _config(args)
    week = parse_date(args.week, "--week")
    employees = load_employees(args.employees)
    staffing = _staffing(args)
    overrides = load_overrides(args.overrides) if args.overrides else []
    locks = load_locked_shifts(args.locks) if args.locks else []

    session = get_session(args.db or DEFAULT_DB_URL) if (args.db or args.persist) else None
    try:
        if args.prior:
            # A CSV snapshot stands in for the stored schedule
            schedule = generate_schedule(
                week,
                employees,
                staffing,
                overrides=overrides,
                config=cfg,
                locked_shifts=locks,
                prior_assignments=import_assignments_csv(args.prior),
            )
            if args.persist:
                ScheduleRepository.save(session, schedule)
        else:
            schedule = build_week_schedule(
                week,
                employees,
                staffing,
                overrides=overrides,
                config=cfg,
                locked_shifts=locks,
                session=session,
                persist=args.persist,
            )
    finally:
        if session is not None:
            session.close()

    validate_schedule(schedule, employees, overrides, cfg)

    if args.out:
        Path(args.out).write_text(json.dumps(schedule.to_dict(), indent=2))
        print(f"[OK] Schedule written to {args.out}")
    if args.csv:
        export_assignments_csv(schedule, args.csv, employees)
        print(f"[OK] Assignments written to {args.csv}")
    if args.persist:
        print(f"[OK] Saved draft for week of {schedule.week_start.isoformat()}")

    for conflict in schedule.conflicts:
        print(f"[WARN] {conflict.type}: {conflict.message}")
    print(summarize_schedule(schedule, employees))


def _cmd_validate(args: argparse.Namespace) -> None:
    cfg = _config(args)
    employees = load_employees(args.employees)
    overrides = load_overrides(args.overrides) if args.overrides else []
    week = parse_date(args.week, "--week") if args.week else None
    schedule = _schedule_from_csv(args.assignments, week)
    validate_schedule(schedule, employees, overrides, cfg)
    print("[OK] Validation passed.")


def _cmd_summarize(args: argparse.Namespace) -> None:
    employees = load_employees(args.employees) if args.employees else []
    print(summarize_schedule(_schedule_from_csv(args.assignments), employees))


def _cmd_check_staffing(args: argparse.Namespace) -> None:
    cfg = _config(args)
    staffing = _staffing(args)
    open_times = {day: hours.open for day, hours in cfg.business_hours.items()}
    issues = validate_staffing_needs(staffing, open_times)
    for issue in issues:
        print(f"[WARN] {issue.day} {issue.type}: {issue.message}")
    if not issues:
        print("[OK] Staffing template looks fine.")


def _cmd_publish(args: argparse.Namespace) -> None:
    week = week_start_for(parse_date(args.week, "--week"))
    session = get_session(args.db)
    try:
        ScheduleRepository.publish(session, week)
    finally:
        session.close()
    print(f"[OK] Published schedule for week of {week.isoformat()}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="restaurant-scheduler")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Generate the schedule for a week")
    g.add_argument("--week", required=True, help="Any date in the target week (YYYY-MM-DD)")
    g.add_argument("--employees", required=True)
    g.add_argument("--staffing")
    g.add_argument("--overrides")
    g.add_argument("--locks")
    g.add_argument("--prior", help="Assignments CSV the locks refer to")
    g.add_argument("--config")
    g.add_argument("--out", help="Write the schedule as JSON")
    g.add_argument("--csv", help="Write assignments as CSV")
    g.add_argument("--db", help=f"Database URL (default {DEFAULT_DB_URL} with --persist)")
    g.add_argument("--persist", action="store_true", help="Save the result as the week's draft")
    g.set_defaults(func=_cmd_generate)

    v = sub.add_parser("validate", help="Validate an assignments CSV")
    v.add_argument("--employees", required=True)
    v.add_argument("--assignments", required=True)
    v.add_argument("--overrides")
    v.add_argument("--week")
    v.add_argument("--config")
    v.set_defaults(func=_cmd_validate)

    s = sub.add_parser("summarize", help="Summarize an assignments CSV")
    s.add_argument("--assignments", required=True)
    s.add_argument("--employees")
    s.set_defaults(func=_cmd_summarize)

    c = sub.add_parser("check-staffing", help="Lint a staffing template")
    c.add_argument("--staffing")
    c.add_argument("--config")
    c.set_defaults(func=_cmd_check_staffing)

    p = sub.add_parser("publish", help="Publish the stored draft for a week")
    p.add_argument("--week", required=True)
    p.add_argument("--db", default=DEFAULT_DB_URL)
    p.set_defaults(func=_cmd_publish)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except ValueError as e:
        print(f"[ERROR] {e}")
        raise


if __name__ == "__main__":
    main()
