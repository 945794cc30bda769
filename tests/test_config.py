import json

import pytest

from restaurant_scheduler.config import SchedulerConfig, config_from_dict, load_config


def test_defaults():
    cfg = SchedulerConfig()
    assert cfg.overtime_threshold_hours == 38
    assert cfg.approaching_overtime_margin_hours == 4
    assert cfg.min_rest_hours == 0
    assert (cfg.bartending_threshold, cfg.alone_threshold) == (3, 3)
    assert cfg.default_window("night").start == "16:00"
    assert cfg.default_window("mid").end == "14:00"
    assert cfg.hours_for("tuesday") is None


def test_load_yaml_config(tmp_path):
    path = tmp_path / "scheduler.yaml"
    path.write_text(
        "overtime_threshold_hours: 40\n"
        "min_rest_hours: 10\n"
        "night_shift:\n  start: '17:00'\n  end: '22:00'\n"
        "business_hours:\n"
        "  Sunday:\n    open: '08:00'\n    close: '15:00'\n"
        "  wednesday:\n    closed: true\n"
    )
    cfg = load_config(path)

    assert cfg.overtime_threshold_hours == 40.0
    assert cfg.min_rest_hours == 10.0
    assert cfg.night_shift.start == "17:00"
    assert cfg.hours_for("sunday").close == "15:00"
    assert cfg.hours_for("wednesday").closed
    assert cfg.hours_for("wednesday").open == "07:15"


def test_load_json_config(tmp_path):
    path = tmp_path / "scheduler.json"
    path.write_text(json.dumps({"bartending_threshold": 4, "min_shift_hours": 2.5}))
    cfg = load_config(path)
    assert cfg.bartending_threshold == 4
    assert cfg.min_shift_hours == 2.5


@pytest.mark.parametrize(
    "data,message",
    [
        ({"overtime_limit": 40}, "Unknown config keys"),
        ({"min_rest_hours": -1}, "non-negative"),
        ({"alone_threshold": 9}, "between 0 and 5"),
        ({"overtime_threshold_hours": "lots"}, "invalid value"),
        ({"morning_shift": {"start": "07:00"}}, "morning_shift"),
        ({"business_hours": {"someday": {}}}, "Unknown day"),
    ],
)
def test_config_rejects_bad_values(data, message):
    with pytest.raises(ValueError, match=message):
        config_from_dict(data)


def test_missing_or_malformed_file(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        load_config(tmp_path / "nope.yaml")

    listed = tmp_path / "list.yaml"
    listed.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(listed)
