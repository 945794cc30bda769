"""Services for scheduling logic."""

from .constraints import Eligibility, can_assign
from .coverage import merge_intervals, subtract_intervals
from .labels import is_bartender_qualified, normalize_slot_label
from .requirements import ExpandedWeek, expand_week, recommended_staffing_needs
from .scoring import candidate_rank_key
from .staffing_checks import validate_staffing_needs

__all__ = [
    "Eligibility",
    "can_assign",
    "merge_intervals",
    "subtract_intervals",
    "is_bartender_qualified",
    "normalize_slot_label",
    "ExpandedWeek",
    "expand_week",
    "recommended_staffing_needs",
    "candidate_rank_key",
    "validate_staffing_needs",
]
