"""Tests for service layer (timeplan, labels, coverage, scoring)."""

import datetime as dt

import pytest

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    AvailableShift,
    DayAvailability,
    Preferences,
    ScheduleOverride,
    Shift,
)
from restaurant_scheduler.services.coverage import merge_intervals, solo_slot_indexes, subtract_intervals
from restaurant_scheduler.services.labels import (
    has_bar_affinity,
    is_bartender_qualified,
    label_implies_bartender,
    needs_supervision,
    normalize_role_tags,
    normalize_slot_label,
)
from restaurant_scheduler.services.scoring import candidate_rank_key, opener_affinity, shift_deficit
from restaurant_scheduler.services.timeplan import (
    absolute_minutes,
    calculate_shift_hours,
    date_for_day,
    minutes_to_time,
    morning_or_night,
    parse_time_string,
    shift_bucket,
    week_start_for,
)


def test_parse_time_string():
    """Test time string parsing."""
    t = parse_time_string("7:15")
    assert t.hour == 7
    assert t.minute == 15

    for bad in ("25:00", "12:60", "noon", ""):
        with pytest.raises(ValueError):
            parse_time_string(bad)


def test_calculate_shift_hours():
    assert calculate_shift_hours("07:15", "12:00") == 4.75
    assert calculate_shift_hours("16:00", "21:00") == 5.0


def test_shift_bucket_boundaries():
    assert shift_bucket("09:59") == "morning"
    assert shift_bucket("10:00") == "mid"
    assert shift_bucket("14:59") == "mid"
    assert shift_bucket("15:00") == "night"
    assert shift_bucket("garbage") == "morning"
    assert morning_or_night("12:00") == "morning"
    assert morning_or_night("16:00") == "night"


def test_week_and_day_dates(week_start):
    assert week_start_for(dt.date(2025, 12, 11)) == week_start
    assert week_start_for(week_start) == week_start
    assert date_for_day(week_start, "tuesday") == dt.date(2025, 12, 9)
    assert date_for_day(week_start, "sunday") == dt.date(2025, 12, 14)
    assert absolute_minutes(week_start, dt.date(2025, 12, 9), "01:00") == 1500


def test_minutes_to_time_clamps():
    assert minutes_to_time(75) == "01:15"
    assert minutes_to_time(-5) == "00:00"
    assert minutes_to_time(24 * 60) == "23:59"


@pytest.mark.parametrize(
    "label,day,start,end,expected",
    [
        ("opener", "tuesday", "07:15", "12:00", "Opener"),
        ("  Opening ", "saturday", "07:15", "15:00", "Weekend Opener"),
        ("opener", "saturday", "07:15", "14:00", "Opener"),
        ("weekend opener", "tuesday", None, None, "Weekend Opener"),
        ("bartending", "friday", None, None, "Bar"),
        ("Lunch", "friday", None, None, "Mid Shift"),
        ("diner 2", "friday", None, None, "Dinner 2"),
        ("DINNER", "friday", None, None, "Dinner"),
        ("2nd server", "friday", None, None, "2nd Server"),
        ("third", "sunday", None, None, "3rd Server"),
        ("closing", "friday", None, None, "Closer"),
        ("", "friday", None, None, "Shift"),
        (None, "friday", None, None, "Shift"),
        ("  Host   stand ", "friday", None, None, "Host stand"),
    ],
)
def test_normalize_slot_label(label, day, start, end, expected):
    assert normalize_slot_label(label, day, start, end) == expected


def test_label_implies_bartender():
    assert label_implies_bartender("Bar")
    assert label_implies_bartender("bartender cover")
    assert not label_implies_bartender("Dinner")
    assert not label_implies_bartender("Barista")
    assert not label_implies_bartender(None)


def test_bartender_qualification(make_employee):
    assert normalize_role_tags(["Bartender", "BAR", "host"]) == ["bar"]

    assert is_bartender_qualified(make_employee("a", bartending_scale=3), 3)
    assert not is_bartender_qualified(make_employee("b", bartending_scale=2), 3)
    assert is_bartender_qualified(make_employee("c", role_tags=["bartending"]), 3)

    needy = make_employee("d", bartending_scale=5, preferences=Preferences(needs_bartender_on_shift=True))
    assert needs_supervision(needy, 3)
    assert needs_supervision(make_employee("e", bartending_scale=1), 3)
    assert not needs_supervision(make_employee("f", bartending_scale=4), 3)


def test_bar_affinity_from_tag_or_availability(make_employee):
    bar_friday = make_employee(
        "lisa",
        availability={"friday": DayAvailability(True, [AvailableShift(type="bar", start_time="16:00")])},
    )
    assert has_bar_affinity(bar_friday, "friday")
    assert not has_bar_affinity(bar_friday, "thursday")
    assert has_bar_affinity(make_employee("kim", role_tags=["bar"]), "tuesday")


def test_merge_intervals():
    merged = merge_intervals([(300, 400), (60, 120), (100, 200), (400, 450), (500, 500)])
    assert merged == [(60, 200), (300, 450)]


def test_subtract_intervals():
    assert subtract_intervals((0, 600), [(100, 200), (150, 300), (500, 700)]) == [(0, 100), (300, 500)]
    assert subtract_intervals((0, 600), []) == [(0, 600)]
    assert subtract_intervals((100, 200), [(0, 300)]) == []


def test_solo_slot_indexes():
    assert solo_slot_indexes([(0, 100), (50, 150)]) == {0, 1}
    assert solo_slot_indexes([(0, 100), (0, 100)]) == set()
    assert solo_slot_indexes([(0, 200), (50, 100)]) == {0}


def _shift(**kwargs):
    defaults = dict(
        id="tue-open",
        day="tuesday",
        date=dt.date(2025, 12, 9),
        bucket="morning",
        start_time="07:15",
        end_time="12:00",
        duration_hours=4.75,
    )
    defaults.update(kwargs)
    return Shift(**defaults)


def test_opener_affinity_is_preference_tiers(make_employee):
    shift = _shift(is_opener=True, label="Opener")
    on_day = make_employee("a", preferences=Preferences(can_open=True, open_days=["tuesday"]))
    any_day = make_employee("b", preferences=Preferences(can_open=True))
    skilled = make_employee("c", bartending_scale=4, alone_scale=4)
    novice = make_employee("d")

    assert opener_affinity(on_day, shift) == (0, 0)
    assert opener_affinity(any_day, shift) == (1, 0)
    assert opener_affinity(skilled, shift) < opener_affinity(novice, shift)


def test_candidate_rank_key_order(make_employee):
    cfg = SchedulerConfig()
    shift = _shift(id="tue-mid", bucket="mid", start_time="12:00", end_time="16:00")
    overrides = [ScheduleOverride(id="p1", type="prioritize", employee_id="late", day="tuesday")]

    def key(emp, hours=0.0, count=0, index=0):
        return candidate_rank_key(
            emp, shift, overrides=overrides, config=cfg, hours=hours, shift_count=count, roster_index=index
        )

    prioritized = make_employee("late")
    quota = make_employee("quota", min_shifts_per_week=4)
    prefers = make_employee("pref", preferences=Preferences(prefers_mid=True))
    plain = make_employee("plain")

    assert key(prioritized, hours=30, index=9) < key(quota)
    assert key(quota) < key(prefers)
    assert key(prefers, hours=20) < key(plain)
    assert key(plain, hours=4) < key(plain, hours=8)
    assert key(plain, index=1) < key(plain, index=2)
    assert shift_deficit(quota, 1) == 3
    assert shift_deficit(quota, 6) == 0
