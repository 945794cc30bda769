"""Scheduler tunables and their YAML/JSON loader.

A ``SchedulerConfig`` is passed explicitly into every generation call; nothing
in the engine reads global settings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml

from .domain.models import DAYS_OF_WEEK


@dataclass
class ShiftWindow:
    start: str
    end: str


@dataclass
class BusinessHours:
    open: str = "07:15"
    close: str = "21:00"
    closed: bool = False


@dataclass
class SchedulerConfig:
    overtime_threshold_hours: float = 38.0
    approaching_overtime_margin_hours: float = 4.0
    min_rest_hours: float = 0.0
    bartending_threshold: int = 3
    alone_threshold: int = 3
    min_shift_hours: float = 3.0
    default_open: str = "07:15"
    default_close: str = "21:00"
    # Used for the legacy staffing shape and for set schedules without times
    morning_shift: ShiftWindow = field(default_factory=lambda: ShiftWindow("07:15", "14:00"))
    night_shift: ShiftWindow = field(default_factory=lambda: ShiftWindow("16:00", "21:00"))
    business_hours: Dict[str, BusinessHours] = field(default_factory=dict)

    def hours_for(self, day: str) -> Optional[BusinessHours]:
        return self.business_hours.get(day)

    def default_window(self, shift_type: str) -> ShiftWindow:
        return self.night_shift if shift_type == "night" else self.morning_shift


_SCALAR_FIELDS = {
    f.name
    for f in fields(SchedulerConfig)
    if f.name not in {"morning_shift", "night_shift", "business_hours"}
}


def read_document(path: Path) -> dict:
    text = path.read_text()
    if path.suffix.lower() == ".json":
        data = json.loads(text) if text.strip() else {}
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a mapping at the top level")
    return data


def _window(raw, name: str) -> ShiftWindow:
    if not isinstance(raw, dict) or "start" not in raw or "end" not in raw:
        raise ValueError(f"Config field '{name}' needs 'start' and 'end'")
    return ShiftWindow(start=str(raw["start"]), end=str(raw["end"]))


def config_from_dict(data: dict) -> SchedulerConfig:
    """Build and validate a config from an already-parsed mapping."""
    unknown = set(data) - _SCALAR_FIELDS - {"morning_shift", "night_shift", "business_hours"}
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    cfg = SchedulerConfig()
    for name in _SCALAR_FIELDS & set(data):
        default = getattr(cfg, name)
        value = data[name]
        try:
            value = type(default)(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Config field '{name}' has invalid value {value!r}") from exc
        setattr(cfg, name, value)

    if "morning_shift" in data:
        cfg.morning_shift = _window(data["morning_shift"], "morning_shift")
    if "night_shift" in data:
        cfg.night_shift = _window(data["night_shift"], "night_shift")

    for day, raw in (data.get("business_hours") or {}).items():
        day = str(day).lower()
        if day not in DAYS_OF_WEEK:
            raise ValueError(f"Unknown day in business_hours: {day}")
        raw = raw or {}
        cfg.business_hours[day] = BusinessHours(
            open=str(raw.get("open", cfg.default_open)),
            close=str(raw.get("close", cfg.default_close)),
            closed=bool(raw.get("closed", False)),
        )

    validate_config(cfg)
    return cfg


def validate_config(cfg: SchedulerConfig) -> None:
    for name in (
        "overtime_threshold_hours",
        "approaching_overtime_margin_hours",
        "min_rest_hours",
        "min_shift_hours",
    ):
        if getattr(cfg, name) < 0:
            raise ValueError(f"Config field '{name}' must be non-negative")
    for name in ("bartending_threshold", "alone_threshold"):
        if not 0 <= getattr(cfg, name) <= 5:
            raise ValueError(f"Config field '{name}' must be between 0 and 5")


def load_config(path: str | Path) -> SchedulerConfig:
    path = Path(path)
    if not path.exists():
        raise ValueError(f"Config file not found: {path}")
    return config_from_dict(read_document(path))
