"""Plain data model for weekly restaurant scheduling.

Every type the engine consumes or produces lives here. They are ordinary
dataclasses so the engine can stay a pure function of its inputs; the
persistence tables in ``tables.py`` mirror the output types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, List, Optional

DAYS_OF_WEEK = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

# Monday is always closed.
OPEN_DAYS = DAYS_OF_WEEK[1:]

WEEKEND_DAYS = {"saturday", "sunday"}

BUCKETS = ("morning", "mid", "night")

AVAILABILITY_TYPES = {"morning", "mid", "night", "bar", "any", "custom"}
RESTRICTION_TYPES = {"no_before", "no_after", "unavailable_range"}
PERMANENT_RULE_TYPES = {"fixed_shift", "only_available", "never_schedule"}
OVERRIDE_TYPES = {"assign", "exclude", "prioritize", "custom_time"}
OVERRIDE_SHIFT_TYPES = {"morning", "mid", "night", "any"}

CONFLICT_TYPES = {
    "no_coverage",
    "no_bartender",
    "employee_unavailable",
    "alone_constraint",
    "rule_violation",
}
WARNING_TYPES = {
    "overtime",
    "under_hours",
    "preference_violated",
    "approaching_limit",
    "coverage_needed",
    "business_closed",
    "early_close",
    "lock_dropped",
}

# Business-wide override markers
ALL_EMPLOYEES = "__ALL__"
CLOSE_EARLY = "__CLOSE_EARLY__"
SENTINEL_EMPLOYEE_IDS = {ALL_EMPLOYEES, CLOSE_EARLY}


@dataclass
class AvailableShift:
    """One acceptable shift bucket within a day's availability."""

    type: str = "any"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    flexible: bool = False


@dataclass
class DayAvailability:
    available: bool = False
    shifts: List[AvailableShift] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class Exclusion:
    """Inclusive date range during which the employee cannot work."""

    start_date: date
    end_date: date
    reason: Optional[str] = None

    def covers(self, day_date: date) -> bool:
        return self.start_date <= day_date <= self.end_date


@dataclass
class EmployeeRestriction:
    """Recurring time-of-day limit. An empty ``days`` list applies to every working day."""

    id: str
    type: str
    time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    days: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def applies_to(self, day: str) -> bool:
        return not self.days or day in self.days


@dataclass
class PermanentRule:
    """Recurring fixed shift, availability window, or never-schedule rule."""

    id: str
    type: str
    day: str
    days: List[str] = field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    is_active: bool = True

    def rule_days(self) -> List[str]:
        return list(self.days) if self.days else [self.day]

    def applies_to(self, day: str) -> bool:
        return self.is_active and day in self.rule_days()


@dataclass
class SetScheduleEntry:
    day: str
    shift_type: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass
class Preferences:
    prefers_morning: bool = False
    prefers_mid: bool = False
    prefers_night: bool = False
    needs_bartender_on_shift: bool = False
    can_open: bool = False
    open_days: List[str] = field(default_factory=list)

    def prefers(self, bucket: str) -> bool:
        return {
            "morning": self.prefers_morning,
            "mid": self.prefers_mid,
            "night": self.prefers_night,
        }.get(bucket, False)


@dataclass
class Employee:
    id: str
    name: str
    bartending_scale: int = 0  # 0-5
    alone_scale: int = 0  # 0-5
    role_tags: List[str] = field(default_factory=list)
    availability: Dict[str, DayAvailability] = field(default_factory=dict)
    set_schedule: List[SetScheduleEntry] = field(default_factory=list)
    exclusions: List[Exclusion] = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)
    min_shifts_per_week: Optional[int] = None
    restrictions: List[EmployeeRestriction] = field(default_factory=list)
    permanent_rules: List[PermanentRule] = field(default_factory=list)
    is_active: bool = True
    phone_number: Optional[str] = None

    def day_availability(self, day: str) -> Optional[DayAvailability]:
        return self.availability.get(day)


@dataclass
class StaffingSlot:
    id: str
    start_time: str
    end_time: str
    label: Optional[str] = None
    headcount: int = 1


@dataclass
class DayStaffing:
    """Staffing for one weekday.

    ``slots`` is the current shape. The ``morning``/``night`` headcounts and
    windows are the legacy shape and are only read when ``slots`` is empty.
    """

    slots: List[StaffingSlot] = field(default_factory=list)
    notes: Optional[str] = None
    morning: Optional[int] = None
    night: Optional[int] = None
    morning_start: Optional[str] = None
    morning_end: Optional[str] = None
    night_start: Optional[str] = None
    night_end: Optional[str] = None

    @property
    def is_legacy(self) -> bool:
        return not self.slots and (bool(self.morning) or bool(self.night))


@dataclass
class WeeklyStaffingNeeds:
    days: Dict[str, DayStaffing] = field(default_factory=dict)

    def for_day(self, day: str) -> Optional[DayStaffing]:
        return self.days.get(day)


@dataclass
class ScheduleOverride:
    id: str
    type: str
    employee_id: str
    day: str
    shift_type: str = "any"
    note: Optional[str] = None
    custom_start_time: Optional[str] = None
    custom_end_time: Optional[str] = None

    @property
    def is_business_wide(self) -> bool:
        return self.employee_id in SENTINEL_EMPLOYEE_IDS

    def matches_bucket(self, bucket: str) -> bool:
        return self.shift_type == "any" or self.shift_type == bucket


@dataclass
class LockedShift:
    employee_id: str
    day: str
    shift_type: str  # morning | night


@dataclass
class Shift:
    """Concrete, dated staffing need derived from a slot. Never persisted."""

    id: str
    day: str
    date: date
    bucket: str
    start_time: str
    end_time: str
    duration_hours: float
    required_staff: int = 1
    label: str = "Shift"
    requires_bartender: bool = False
    requires_solo: bool = False
    is_opener: bool = False
    synthetic: bool = False


@dataclass
class ScheduleAssignment:
    shift_id: str
    employee_id: str
    date: date
    start_time: str
    end_time: str

    @property
    def key(self):
        return (self.employee_id, self.date, self.shift_id)


@dataclass
class ScheduleConflict:
    type: str
    shift_id: str
    date: date
    message: str


@dataclass
class ScheduleWarning:
    type: str
    message: str
    employee_id: Optional[str] = None


@dataclass
class WeeklySchedule:
    week_start: date
    assignments: List[ScheduleAssignment] = field(default_factory=list)
    conflicts: List[ScheduleConflict] = field(default_factory=list)
    warnings: List[ScheduleWarning] = field(default_factory=list)

    def assignments_for(self, employee_id: str) -> List[ScheduleAssignment]:
        return [a for a in self.assignments if a.employee_id == employee_id]

    def to_dict(self) -> dict:
        """JSON-friendly representation with ISO dates."""
        def _iso(record: dict) -> dict:
            return {k: (v.isoformat() if isinstance(v, date) else v) for k, v in record.items()}

        return {
            "week_start": self.week_start.isoformat(),
            "assignments": [_iso(asdict(a)) for a in self.assignments],
            "conflicts": [_iso(asdict(c)) for c in self.conflicts],
            "warnings": [_iso(asdict(w)) for w in self.warnings],
        }
