"""Staffing-slot label and employee role-tag normalization."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from restaurant_scheduler.domain.models import WEEKEND_DAYS, Employee

from .timeplan import is_valid_time, time_to_minutes

OPENER_LABELS = {"Opener", "Weekend Opener"}

_DINNER_NUMBER = re.compile(r"\b(dinn?er)\s*(\d+)\b")
_OPENER = re.compile(r"\bopen(er|ing)?\b")
_WEEKEND = re.compile(r"\bweekend\b")
_BAR = re.compile(r"\bbar\b|\bbartend(er|ing)?\b")
_MID = re.compile(r"\bmid\b|\blunch\b")
_SECOND = re.compile(r"\b(2nd|second)\b")
_THIRD = re.compile(r"\b(3rd|third)\b")
_CLOSER = re.compile(r"\bclos(e|er|ing)\b")
_DINNER = re.compile(r"\b(dinn?er)\b")

_BAR_ROLE_TOKENS = {"bar", "bartender", "bartending", "bartend"}


def _squash(value: str) -> str:
    return " ".join(value.split())


def normalize_slot_label(
    label: Optional[str],
    day: str,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> str:
    """Map a free-text slot label onto a canonical role name.

    Case and spacing are ignored and common synonyms are folded together
    ("bartending" -> "Bar", "lunch" -> "Mid Shift", "diner 2" -> "Dinner 2").
    Labels that match nothing are returned whitespace-normalized.
    """
    raw = _squash(str(label or ""))
    if not raw:
        return "Shift"
    lower = raw.lower()

    numbered = _DINNER_NUMBER.search(lower)
    if numbered and int(numbered.group(2)) > 0:
        return f"Dinner {int(numbered.group(2))}"

    if _OPENER.search(lower):
        if _WEEKEND.search(lower):
            return "Weekend Opener"
        # A weekend opener that runs past 3pm is a weekend opener even if not called one
        if day in WEEKEND_DAYS and is_valid_time(end_time) and time_to_minutes(end_time) >= 15 * 60:
            return "Weekend Opener"
        return "Opener"

    if _BAR.search(lower):
        return "Bar"
    if _MID.search(lower):
        return "Mid Shift"
    if _SECOND.search(lower):
        return "2nd Server"
    if _THIRD.search(lower):
        return "3rd Server"
    if _CLOSER.search(lower):
        return "Closer"
    if _DINNER.search(lower):
        return "Dinner"
    return raw


def label_implies_bartender(label: Optional[str]) -> bool:
    return bool(label) and bool(_BAR.search(label.lower()))


def is_opener_label(label: Optional[str]) -> bool:
    return label in OPENER_LABELS


def normalize_role_tags(role_tags: Optional[Iterable[str]]) -> List[str]:
    """Canonical, de-duplicated role tags. Only ``bar`` is recognized today."""
    out: List[str] = []
    for raw in role_tags or []:
        token = (raw or "").strip().lower()
        if token in _BAR_ROLE_TOKENS and "bar" not in out:
            out.append("bar")
    return out


def has_bar_tag(employee: Employee) -> bool:
    return "bar" in normalize_role_tags(employee.role_tags)


def is_bartender_qualified(employee: Employee, threshold: int) -> bool:
    return employee.bartending_scale >= threshold or has_bar_tag(employee)


def has_bar_availability(employee: Employee, day: str) -> bool:
    day_avail = employee.day_availability(day)
    if not day_avail or not day_avail.available:
        return False
    return any(entry.type == "bar" for entry in day_avail.shifts)


def has_bar_affinity(employee: Employee, day: str) -> bool:
    """True when the employee is explicitly meant for Bar slots on ``day``."""
    return has_bar_tag(employee) or has_bar_availability(employee, day)


def needs_supervision(employee: Employee, threshold: int) -> bool:
    return (
        not is_bartender_qualified(employee, threshold)
        or employee.preferences.needs_bartender_on_shift
    )
