"""Time and calendar helpers shared by the services and the engine."""

from __future__ import annotations

import re
from datetime import date, time, timedelta
from typing import Optional

from restaurant_scheduler.domain.models import DAYS_OF_WEEK

MID_START_HOUR = 10
NIGHT_START_HOUR = 15  # 3pm and later is a night shift

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_string(value: str) -> time:
    """Parse ``HH:MM`` into a ``time``. Raises ``ValueError`` on malformed input."""
    match = _TIME_RE.match(str(value or "").strip())
    if not match:
        raise ValueError(f"Invalid time string: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time string: {value!r}")
    return time(hours, minutes)


def is_valid_time(value: Optional[str]) -> bool:
    try:
        parse_time_string(value)
    except ValueError:
        return False
    return True


def time_to_minutes(value: str) -> int:
    t = parse_time_string(value)
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> str:
    minutes = max(0, min(int(minutes), 24 * 60 - 1))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def calculate_shift_hours(start: str, end: str) -> float:
    return (time_to_minutes(end) - time_to_minutes(start)) / 60.0


def shift_bucket(start: Optional[str]) -> str:
    """Classify a shift as morning / mid / night from its start hour."""
    if not is_valid_time(start):
        return "morning"
    hour = parse_time_string(start).hour
    if hour < MID_START_HOUR:
        return "morning"
    if hour < NIGHT_START_HOUR:
        return "mid"
    return "night"


def morning_or_night(start: Optional[str]) -> str:
    return "night" if shift_bucket(start) == "night" else "morning"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def week_start_for(any_day: date) -> date:
    """Monday of the week containing ``any_day``."""
    return any_day - timedelta(days=any_day.weekday())


def date_for_day(week_start: date, day: str) -> date:
    return week_start + timedelta(days=DAYS_OF_WEEK.index(day))


def day_for_date(day_date: date) -> str:
    return DAYS_OF_WEEK[day_date.weekday()]


def absolute_minutes(week_start: date, day_date: date, hhmm: str) -> int:
    """Minutes since the week's Monday midnight; used for rest-between-shifts math."""
    return (day_date - week_start).days * 24 * 60 + time_to_minutes(hhmm)
