"""Tests for the passes that run ahead of greedy fill, and the bartender and consistency passes."""

import datetime as dt

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    DayAvailability,
    Exclusion,
    LockedShift,
    PermanentRule,
    ScheduleAssignment,
    ScheduleOverride,
    SetScheduleEntry,
    WeeklyStaffingNeeds,
)
from restaurant_scheduler.engine.base import SchedulingPass
from restaurant_scheduler.engine.orchestrator import Orchestrator, generate_schedule
from restaurant_scheduler.engine.precedence import LockedShiftPass
from restaurant_scheduler.services.requirements import recommended_staffing_needs

TUE = dt.date(2025, 12, 9)
FRI = dt.date(2025, 12, 12)
PRIOR_TUE = dt.date(2025, 12, 2)
PRIOR_WED = dt.date(2025, 12, 3)
WED = dt.date(2025, 12, 10)


def _placed(schedule):
    return [(a.shift_id, a.employee_id, a.start_time, a.end_time) for a in schedule.assignments]


def _warning_types(schedule):
    return [w.type for w in schedule.warnings]


# Locks

def test_lock_readmits_prior_assignment(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    a = make_employee("a", bartending_scale=3)
    x = make_employee("x", bartending_scale=3)
    prior = [ScheduleAssignment("tue-open", "x", PRIOR_TUE, "07:15", "12:00")]

    schedule = generate_schedule(
        week_start, [a, x], staffing, [], config,
        locked_shifts=[LockedShift("x", "tuesday", "morning")],
        prior_assignments=prior,
    )

    assert _placed(schedule) == [("tue-open", "x", "07:15", "12:00")]
    assert schedule.assignments[0].date == TUE
    assert schedule.conflicts == []


def test_lock_without_snapshot_is_dropped(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    x = make_employee("x", bartending_scale=3)
    gone = make_employee("gone", bartending_scale=3, is_active=False)

    schedule = generate_schedule(
        week_start, [x, gone], staffing, [], config,
        locked_shifts=[LockedShift("x", "tuesday", "night"), LockedShift("gone", "tuesday", "morning")],
        prior_assignments=[ScheduleAssignment("tue-open", "gone", PRIOR_TUE, "07:15", "12:00")],
    )

    assert _warning_types(schedule).count("lock_dropped") == 2
    assert [a.employee_id for a in schedule.assignments] == ["x"]


def test_lock_beats_exclude_override_but_is_reported(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    x = make_employee("x", bartending_scale=3)
    overrides = [ScheduleOverride(id="o1", type="exclude", employee_id="x", day="tuesday", shift_type="morning")]

    schedule = generate_schedule(
        week_start, [x], staffing, overrides, config,
        locked_shifts=[LockedShift("x", "tuesday", "morning")],
        prior_assignments=[ScheduleAssignment("tue-open", "x", PRIOR_TUE, "07:15", "12:00")],
    )

    [conflict] = schedule.conflicts
    assert conflict.type == "rule_violation"
    assert conflict.shift_id == "tue-open"


def test_lock_uses_up_the_slot_on_its_own_day(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(
        tuesday=[("opener", "07:15", "12:00", "Opener")],
        wednesday=[("opener", "07:15", "12:00", "Opener")],
    )
    a = make_employee("a", bartending_scale=3)
    x = make_employee("x", bartending_scale=3)

    schedule = generate_schedule(
        week_start, [a, x], staffing, [], config,
        locked_shifts=[LockedShift("x", "wednesday", "morning")],
        prior_assignments=[ScheduleAssignment("opener", "x", PRIOR_WED, "07:15", "12:00")],
    )

    wednesday = [(s.shift_id, s.employee_id) for s in schedule.assignments if s.date == WED]
    assert wednesday == [("opener", "x")]
    assert [s.date for s in schedule.assignments] == [TUE, WED]
    assert schedule.conflicts == []


def test_generation_with_locks_is_repeatable(make_employee, week_start, config):
    employees = [make_employee(f"e{i}", bartending_scale=3) for i in range(1, 6)]
    locks = [LockedShift("e1", "tuesday", "morning"), LockedShift("e2", "friday", "night")]
    prior = [ScheduleAssignment("tue-open", "e1", PRIOR_TUE, "07:15", "12:00")]

    runs = [
        generate_schedule(
            week_start, employees, recommended_staffing_needs(), [], config,
            locked_shifts=locks, prior_assignments=prior,
        )
        for _ in range(2)
    ]

    assert runs[0].to_dict() == runs[1].to_dict()
    assert ("e1", TUE, "07:15") in [(a.employee_id, a.date, a.start_time) for a in runs[0].assignments]
    assert _warning_types(runs[0]).count("lock_dropped") == 1


# Fixed and set schedules)

def test_fixed_shift_consumes_matching_slot(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    other = make_employee("other", bartending_scale=3)
    w = make_employee(
        "w", bartending_scale=3,
        permanent_rules=[
            PermanentRule(id="p1", type="fixed_shift", day="tuesday", start_time="07:15", end_time="12:00")
        ],
    )

    schedule = generate_schedule(week_start, [other, w], staffing, [], config)

    assert _placed(schedule) == [("tue-open-fixed-w", "w", "07:15", "12:00")]
    assert schedule.conflicts == []


def test_fixed_shift_holds_employee_to_their_window(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(friday=[("fri-noon", "12:00", "16:00", "Mid Shift")])
    w = make_employee(
        "w", bartending_scale=3,
        permanent_rules=[
            PermanentRule(id="p1", type="fixed_shift", day="tuesday", start_time="09:00", end_time="12:00",
                          days=["tuesday", "friday"])
        ],
    )

    schedule = generate_schedule(week_start, [w], staffing, [], config)

    assert _placed(schedule) == [
        ("tue-fixed-w", "w", "09:00", "12:00"),
        ("fri-fixed-w", "w", "09:00", "12:00"),
    ]
    assert [c.type for c in schedule.conflicts] == ["no_coverage"]


def test_set_schedule_attaches_bar_staff_to_bar_slot(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(
        friday=[("fri-dinner", "16:00", "21:00", "Dinner"), ("fri-bar", "16:00", "21:00", "Bar")]
    )
    dan = make_employee("dan", bartending_scale=3)
    kim = make_employee(
        "kim", role_tags=["bar"],
        set_schedule=[SetScheduleEntry(day="friday", shift_type="night", start_time="16:00", end_time="21:00")],
    )

    schedule = generate_schedule(week_start, [dan, kim], staffing, [], config)

    assert sorted(_placed(schedule)) == [
        ("fri-bar-set-kim", "kim", "16:00", "21:00"),
        ("fri-dinner", "dan", "16:00", "21:00"),
    ]


def test_set_schedule_needs_day_availability(make_employee, week_start, config):
    off = make_employee(
        "off", bartending_scale=3,
        availability={"friday": DayAvailability(False, [])},
        set_schedule=[SetScheduleEntry(day="friday", shift_type="morning")],
    )
    on = make_employee(
        "on", bartending_scale=3,
        set_schedule=[SetScheduleEntry(day="friday", shift_type="morning")],
    )

    schedule = generate_schedule(week_start, [off, on], WeeklyStaffingNeeds(), [], config)

    assert _placed(schedule) == [("fri-set-on-morning", "on", "07:15", "14:00")]


# Overrides

def test_assign_override_bypasses_availability(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    y = make_employee("y", bartending_scale=3, availability={"tuesday": DayAvailability(False, [])})
    overrides = [ScheduleOverride(id="o1", type="assign", employee_id="y", day="tuesday", shift_type="morning")]

    schedule = generate_schedule(week_start, [y], staffing, overrides, config)

    assert _placed(schedule) == [("tue-open", "y", "07:15", "12:00")]
    assert schedule.conflicts == []


def test_assign_override_without_slot_uses_default_window(make_employee, make_staffing, week_start, config):
    y = make_employee("y", bartending_scale=3)
    overrides = [ScheduleOverride(id="o1", type="assign", employee_id="y", day="tuesday", shift_type="night")]

    schedule = generate_schedule(week_start, [y], make_staffing(), overrides, config)

    assert _placed(schedule) == [("tue-assign-y-night", "y", "16:00", "21:00")]


def test_unhonored_assign_is_a_rule_violation(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    y = make_employee("y", bartending_scale=3, exclusions=[Exclusion(TUE, TUE, reason="vacation")])
    helper = make_employee("h", bartending_scale=3)
    overrides = [ScheduleOverride(id="o1", type="assign", employee_id="y", day="tuesday", shift_type="morning")]

    schedule = generate_schedule(week_start, [y, helper], staffing, overrides, config)

    assert [a.employee_id for a in schedule.assignments] == ["h"]
    [conflict] = schedule.conflicts
    assert conflict.type == "rule_violation"
    assert conflict.shift_id == "override-o1"
    assert conflict.date == TUE


def test_custom_time_splits_slot_and_cover_is_filled(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")])
    y = make_employee("y", bartending_scale=3)
    z = make_employee("z", bartending_scale=3)
    overrides = [
        ScheduleOverride(
            id="o1", type="custom_time", employee_id="y", day="tuesday",
            custom_start_time="07:15", custom_end_time="10:00",
        )
    ]

    schedule = generate_schedule(week_start, [y, z], staffing, overrides, config)

    assert _placed(schedule) == [
        ("tue-open", "y", "07:15", "10:00"),
        ("tue-open-cover-1", "z", "10:00", "12:00"),
    ]
    assert "coverage_needed" in _warning_types(schedule)
    assert schedule.conflicts == []


def test_custom_time_defaults_missing_end_to_close(make_employee, make_staffing, week_start, config):
    y = make_employee("y", bartending_scale=3)
    overrides = [
        ScheduleOverride(id="o1", type="custom_time", employee_id="y", day="thursday", custom_start_time="17:00")
    ]

    schedule = generate_schedule(week_start, [y], make_staffing(), overrides, config)

    assert _placed(schedule) == [("thu-custom-y-night", "y", "17:00", "21:00")]


# Bartender gaps

def test_bartender_gap_is_filled(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(
        tuesday=[("tue-open", "07:15", "14:00", "Opener"), ("tue-bar", "16:00", "21:00", "Bar")]
    )
    z = make_employee("z", bartending_scale=1)
    b = make_employee("b", bartending_scale=4)
    overrides = [ScheduleOverride(id="o1", type="assign", employee_id="z", day="tuesday", shift_type="morning")]

    schedule = generate_schedule(week_start, [z, b], staffing, overrides, config)

    assert _placed(schedule) == [
        ("tue-bartender-gap-z-1", "b", "07:15", "14:00"),
        ("tue-open", "z", "07:15", "14:00"),
        ("tue-bar", "b", "16:00", "21:00"),
    ]
    assert schedule.conflicts == []
    assert "coverage_needed" in _warning_types(schedule)


def test_partial_bartender_cover_only_books_the_gap(make_employee, make_staffing, week_start, config):
    staffing = make_staffing(
        tuesday=[("tue-open", "07:15", "14:00", "Opener"), ("tue-bar", "11:00", "16:00", "Bar")]
    )
    z = make_employee("z", bartending_scale=0)
    b = make_employee("b", bartending_scale=4)
    c = make_employee("c", bartending_scale=5)
    overrides = [
        ScheduleOverride(id="o1", type="assign", employee_id="z", day="tuesday", shift_type="morning"),
        ScheduleOverride(id="o2", type="assign", employee_id="b", day="tuesday", shift_type="mid"),
    ]

    schedule = generate_schedule(week_start, [z, b, c], staffing, overrides, config)

    gaps = [a for a in schedule.assignments if "bartender-gap" in a.shift_id]
    assert [(a.employee_id, a.start_time, a.end_time) for a in gaps] == [("c", "07:15", "11:00")]
    assert schedule.conflicts == []


# Orchestrator

class _RecordingPass(SchedulingPass):
    name = "recording"

    def __init__(self):
        self.seen = []

    def run(self, ctx):
        self.seen.append(len(ctx.assignments))


def test_orchestrator_runs_custom_passes_in_order(make_employee, make_staffing, week_start):
    recorder = _RecordingPass()
    orchestrator = Orchestrator(passes=[LockedShiftPass(), recorder])
    prior = [ScheduleAssignment("tue-open", "x", PRIOR_TUE, "07:15", "12:00")]

    schedule = orchestrator.build_schedule(
        week_start,
        [make_employee("x")],
        make_staffing(tuesday=[("tue-open", "07:15", "12:00", "Opener")]),
        config=SchedulerConfig(),
        locked_shifts=[LockedShift("x", "tuesday", "morning")],
        prior_assignments=prior,
    )

    assert recorder.seen == [1]
    assert recorder.get_pass_name() == "recording"
    assert LockedShiftPass().get_pass_name() == "locked"
    assert len(schedule.assignments) == 1
