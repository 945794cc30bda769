"""Minute-level interval arithmetic and solo-time detection."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Set, Tuple

Interval = Tuple[int, int]


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort and merge overlapping or touching ``[start, end)`` intervals."""
    ordered = sorted((s, e) for s, e in intervals if e > s)
    merged: List[Interval] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def subtract_intervals(base: Interval, covered: Sequence[Interval]) -> List[Interval]:
    """Parts of ``base`` not covered by any interval in ``covered``."""
    start, end = base
    gaps: List[Interval] = []
    cursor = start
    for c_start, c_end in merge_intervals(covered):
        if c_end <= cursor or c_start >= end:
            continue
        if c_start > cursor:
            gaps.append((cursor, c_start))
        cursor = max(cursor, c_end)
        if cursor >= end:
            break
    if cursor < end:
        gaps.append((cursor, end))
    return gaps


def solo_slot_indexes(intervals: Sequence[Interval]) -> Set[int]:
    """Indexes of intervals that are the only active one for some segment of the day.

    The day is cut at every slot boundary; a segment whose midpoint falls in
    exactly one interval marks that interval as having solo time.
    """
    points = sorted({p for interval in intervals for p in interval})
    solo: Set[int] = set()
    for left, right in zip(points, points[1:]):
        if right <= left:
            continue
        mid = (left + right) / 2
        active = [i for i, (s, e) in enumerate(intervals) if s <= mid < e]
        if len(active) == 1:
            solo.add(active[0])
    return solo
