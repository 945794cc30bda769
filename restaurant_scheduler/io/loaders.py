"""YAML/JSON loaders for rosters, staffing templates, overrides and locks.

Every loader raises ``ValueError`` naming the offending field when a
document is malformed; the engine itself only ever sees validated objects.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from restaurant_scheduler.config import read_document
from restaurant_scheduler.domain.models import (
    AVAILABILITY_TYPES,
    DAYS_OF_WEEK,
    OVERRIDE_SHIFT_TYPES,
    OVERRIDE_TYPES,
    PERMANENT_RULE_TYPES,
    RESTRICTION_TYPES,
    AvailableShift,
    DayAvailability,
    DayStaffing,
    Employee,
    EmployeeRestriction,
    Exclusion,
    LockedShift,
    PermanentRule,
    Preferences,
    ScheduleOverride,
    SetScheduleEntry,
    StaffingSlot,
    WeeklyStaffingNeeds,
)
from restaurant_scheduler.services.labels import normalize_role_tags
from restaurant_scheduler.services.timeplan import parse_time_string

logger = logging.getLogger(__name__)


def _time(value: Any, where: str, required: bool = False) -> Optional[str]:
    if value is None or value == "":
        if required:
            raise ValueError(f"{where}: time is required")
        return None
    try:
        t = parse_time_string(str(value))
    except ValueError as exc:
        raise ValueError(f"{where}: {exc}") from exc
    return f"{t.hour:02d}:{t.minute:02d}"


def _day(value: Any, where: str) -> str:
    day = str(value or "").strip().lower()
    if day not in DAYS_OF_WEEK:
        raise ValueError(f"{where}: unknown day {value!r}")
    return day


def _choice(value: Any, allowed, where: str, default: Optional[str] = None) -> str:
    value = default if value is None else str(value).strip().lower()
    if value not in allowed:
        raise ValueError(f"{where}: {value!r} is not one of {sorted(allowed)}")
    return value


def parse_date(value: Any, where: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{where}: invalid date {value!r}") from exc


def _scale(value: Any, where: str) -> int:
    try:
        scale = int(value or 0)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where}: expected an integer 0-5, got {value!r}") from exc
    if not 0 <= scale <= 5:
        raise ValueError(f"{where}: expected an integer 0-5, got {value!r}")
    return scale


def parse_employee(raw: Dict[str, Any]) -> Employee:
    """Build an ``Employee`` from one roster entry."""
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ValueError(f"Employee entry needs an 'id': {raw!r}")
    emp_id = str(raw["id"])
    where = f"employee {emp_id}"

    availability: Dict[str, DayAvailability] = {}
    for day_key, day_raw in (raw.get("availability") or {}).items():
        day = _day(day_key, f"{where}.availability")
        if day_raw is None:
            availability[day] = DayAvailability(available=False)
            continue
        shifts = [
            AvailableShift(
                type=_choice(s.get("type"), AVAILABILITY_TYPES, f"{where}.availability.{day}.type", "any"),
                start_time=_time(s.get("start_time"), f"{where}.availability.{day}.start_time"),
                end_time=_time(s.get("end_time"), f"{where}.availability.{day}.end_time"),
                flexible=bool(s.get("flexible", False)),
            )
            for s in day_raw.get("shifts") or []
        ]
        availability[day] = DayAvailability(
            available=bool(day_raw.get("available", bool(shifts))),
            shifts=shifts,
            notes=day_raw.get("notes"),
        )

    prefs_raw = raw.get("preferences") or {}
    preferences = Preferences(
        prefers_morning=bool(prefs_raw.get("prefers_morning", False)),
        prefers_mid=bool(prefs_raw.get("prefers_mid", False)),
        prefers_night=bool(prefs_raw.get("prefers_night", False)),
        needs_bartender_on_shift=bool(prefs_raw.get("needs_bartender_on_shift", False)),
        can_open=bool(prefs_raw.get("can_open", False)),
        open_days=[_day(d, f"{where}.preferences.open_days") for d in prefs_raw.get("open_days") or []],
    )

    restrictions = []
    for i, r in enumerate(raw.get("restrictions") or []):
        rw = f"{where}.restrictions[{i}]"
        restrictions.append(EmployeeRestriction(
            id=str(r.get("id") or f"{emp_id}-restriction-{i + 1}"),
            type=_choice(r.get("type"), RESTRICTION_TYPES, f"{rw}.type"),
            time=_time(r.get("time"), f"{rw}.time"),
            start_time=_time(r.get("start_time"), f"{rw}.start_time"),
            end_time=_time(r.get("end_time"), f"{rw}.end_time"),
            days=[_day(d, f"{rw}.days") for d in r.get("days") or []],
            reason=r.get("reason"),
        ))

    rules = []
    for i, r in enumerate(raw.get("permanent_rules") or []):
        rw = f"{where}.permanent_rules[{i}]"
        days = [_day(d, f"{rw}.days") for d in r.get("days") or []]
        if not r.get("day") and not days:
            raise ValueError(f"{rw}: needs 'day' or 'days'")
        rules.append(PermanentRule(
            id=str(r.get("id") or f"{emp_id}-rule-{i + 1}"),
            type=_choice(r.get("type"), PERMANENT_RULE_TYPES, f"{rw}.type"),
            day=_day(r.get("day"), f"{rw}.day") if r.get("day") else days[0],
            days=days,
            start_time=_time(r.get("start_time"), f"{rw}.start_time"),
            end_time=_time(r.get("end_time"), f"{rw}.end_time"),
            reason=r.get("reason"),
            is_active=bool(r.get("is_active", True)),
        ))

    set_schedule = [
        SetScheduleEntry(
            day=_day(s.get("day"), f"{where}.set_schedule.day"),
            shift_type=_choice(s.get("shift_type"), {"morning", "mid", "night"}, f"{where}.set_schedule.shift_type"),
            start_time=_time(s.get("start_time"), f"{where}.set_schedule.start_time"),
            end_time=_time(s.get("end_time"), f"{where}.set_schedule.end_time"),
        )
        for s in raw.get("set_schedule") or []
    ]

    exclusions = [
        Exclusion(
            start_date=parse_date(x.get("start_date"), f"{where}.exclusions.start_date"),
            end_date=parse_date(x.get("end_date") or x.get("start_date"), f"{where}.exclusions.end_date"),
            reason=x.get("reason"),
        )
        for x in raw.get("exclusions") or []
    ]

    min_shifts = raw.get("min_shifts_per_week")
    return Employee(
        id=emp_id,
        name=str(raw.get("name") or emp_id),
        bartending_scale=_scale(raw.get("bartending_scale"), f"{where}.bartending_scale"),
        alone_scale=_scale(raw.get("alone_scale"), f"{where}.alone_scale"),
        role_tags=normalize_role_tags(raw.get("role_tags")),
        availability=availability,
        set_schedule=set_schedule,
        exclusions=exclusions,
        preferences=preferences,
        min_shifts_per_week=int(min_shifts) if min_shifts is not None else None,
        restrictions=restrictions,
        permanent_rules=rules,
        is_active=bool(raw.get("is_active", True)),
        phone_number=raw.get("phone_number"),
    )


def parse_staffing(raw: Dict[str, Any]) -> WeeklyStaffingNeeds:
    days: Dict[str, DayStaffing] = {}
    for day_key, day_raw in (raw or {}).items():
        day = _day(day_key, "staffing")
        day_raw = day_raw or {}
        slots = []
        for i, s in enumerate(day_raw.get("slots") or []):
            sw = f"staffing.{day}.slots[{i}]"
            slots.append(StaffingSlot(
                id=str(s.get("id") or f"{day[:3]}-slot-{i + 1}"),
                start_time=_time(s.get("start_time"), f"{sw}.start_time", required=True),
                end_time=_time(s.get("end_time"), f"{sw}.end_time", required=True),
                label=s.get("label"),
                headcount=int(s.get("headcount") or 1),
            ))
        days[day] = DayStaffing(
            slots=slots,
            notes=day_raw.get("notes"),
            morning=day_raw.get("morning"),
            night=day_raw.get("night"),
            morning_start=_time(day_raw.get("morning_start"), f"staffing.{day}.morning_start"),
            morning_end=_time(day_raw.get("morning_end"), f"staffing.{day}.morning_end"),
            night_start=_time(day_raw.get("night_start"), f"staffing.{day}.night_start"),
            night_end=_time(day_raw.get("night_end"), f"staffing.{day}.night_end"),
        )
    return WeeklyStaffingNeeds(days=days)


def parse_override(raw: Dict[str, Any], index: int = 0) -> ScheduleOverride:
    where = f"overrides[{index}]"
    if not raw.get("employee_id"):
        raise ValueError(f"{where}: employee_id is required")
    return ScheduleOverride(
        id=str(raw.get("id") or f"override-{index + 1}"),
        type=_choice(raw.get("type"), OVERRIDE_TYPES, f"{where}.type"),
        employee_id=str(raw["employee_id"]),
        day=_day(raw.get("day"), f"{where}.day"),
        shift_type=_choice(raw.get("shift_type"), OVERRIDE_SHIFT_TYPES, f"{where}.shift_type", "any"),
        note=raw.get("note"),
        custom_start_time=_time(raw.get("custom_start_time"), f"{where}.custom_start_time"),
        custom_end_time=_time(raw.get("custom_end_time"), f"{where}.custom_end_time"),
    )


def parse_lock(raw: Dict[str, Any], index: int = 0) -> LockedShift:
    where = f"locked_shifts[{index}]"
    if not raw.get("employee_id"):
        raise ValueError(f"{where}: employee_id is required")
    return LockedShift(
        employee_id=str(raw["employee_id"]),
        day=_day(raw.get("day"), f"{where}.day"),
        shift_type=_choice(raw.get("shift_type"), {"morning", "night"}, f"{where}.shift_type"),
    )


def _section(path: str | Path, key: str) -> Any:
    path = Path(path)
    if not path.exists():
        raise ValueError(f"File not found: {path}")
    data = read_document(path)
    if key not in data:
        raise ValueError(f"{path} has no '{key}' section")
    return data[key]


def load_employees(path: str | Path) -> List[Employee]:
    entries = _section(path, "employees") or []
    employees = [parse_employee(raw) for raw in entries]
    logger.info("Loaded %d employees from %s", len(employees), path)
    return employees


def load_staffing_needs(path: str | Path) -> WeeklyStaffingNeeds:
    return parse_staffing(_section(path, "staffing"))


def load_overrides(path: str | Path) -> List[ScheduleOverride]:
    return [parse_override(raw, i) for i, raw in enumerate(_section(path, "overrides") or [])]


def load_locked_shifts(path: str | Path) -> List[LockedShift]:
    return [parse_lock(raw, i) for i, raw in enumerate(_section(path, "locked_shifts") or [])]
