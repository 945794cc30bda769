"""Scheduling engine: ordered passes over a shared generation context."""

from .assignment import GreedyFillPass
from .bartender import BartenderGapPass
from .base import SchedulingPass
from .consistency import ConsistencyPass
from .context import GenerationContext
from .orchestrator import Orchestrator, build_week_schedule, default_passes, generate_schedule
from .precedence import FixedSchedulePass, LockedShiftPass, OverridePass

__all__ = [
    "SchedulingPass",
    "GenerationContext",
    "LockedShiftPass",
    "FixedSchedulePass",
    "OverridePass",
    "GreedyFillPass",
    "BartenderGapPass",
    "ConsistencyPass",
    "Orchestrator",
    "default_passes",
    "generate_schedule",
    "build_week_schedule",
]
