import random
from datetime import datetime, timedelta, timezone

from models.line import Line
from utils.sm2 import grade_line, map_outcome_to_quality, progress_fields, update_sm2

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _line(**overrides) -> Line:
    fields = {
        "id": "line-1",
        "script_id": "script-1",
        "scene_id": "scene-1",
        "cue": "Who's there?",
        "cue_character": "Barnardo",
        "response": "Nay, answer me.",
        "response_character": "Francisco",
        "order": 0,
        "due_date": NOW,
    }
    fields.update(overrides)
    return Line(**fields)


def test_outcome_maps_to_fixed_quality():
    assert map_outcome_to_quality(True) == 4
    assert map_outcome_to_quality(False) == 1


def test_update_sm2_failure_resets_repetition():
    interval, repetition, ef = update_sm2(15, 4, 2.5, 1)
    assert interval == 1
    assert repetition == 0
    assert abs(ef - 1.96) < 1e-9


def test_three_correct_grades_follow_sm2_intervals():
    line = _line()
    first = grade_line(line, True, now=NOW)
    assert (first.interval, first.repetition) == (1, 1)
    second = grade_line(first, True, now=NOW)
    assert (second.interval, second.repetition) == (6, 2)
    third = grade_line(second, True, now=NOW)
    assert third.interval == round(6 * second.easiness_factor)
    assert third.repetition == 3


def test_correct_grade_keeps_easiness_factor():
    graded = grade_line(_line(easiness_factor=2.1), True, now=NOW)
    assert abs(graded.easiness_factor - 2.1) < 1e-9


def test_due_date_is_now_plus_interval():
    graded = grade_line(_line(repetition=1, interval=1), True, now=NOW)
    assert graded.interval == 6
    assert graded.due_date == NOW + timedelta(days=6)


def test_easiness_factor_never_drops_below_floor():
    rng = random.Random(7)
    line = _line()
    for _ in range(200):
        line = grade_line(line, rng.random() < 0.4, now=NOW)
        assert line.easiness_factor >= 1.3


def test_repeated_failures_clamp_at_floor():
    line = _line()
    for _ in range(5):
        line = grade_line(line, False, now=NOW)
    assert line.easiness_factor == 1.3


def test_incorrect_grade_resets_streak():
    for streak in (0, 1, 2, 3, 9):
        assert grade_line(_line(consecutive_correct=streak), False, now=NOW).consecutive_correct == 0


def test_correct_grade_grows_streak():
    for streak in (0, 1, 2, 3, 9):
        assert grade_line(_line(consecutive_correct=streak), True, now=NOW).consecutive_correct == streak + 1


def test_grade_returns_new_line_and_leaves_input_untouched():
    line = _line(consecutive_correct=2)
    graded = grade_line(line, True, now=NOW)
    assert graded is not line
    assert line.consecutive_correct == 2
    assert line.repetition == 0
    for name in ("id", "script_id", "scene_id", "cue", "cue_character", "response", "response_character", "order"):
        assert getattr(graded, name) == getattr(line, name)


def test_progress_fields_are_the_update_set():
    graded = grade_line(_line(), True, now=NOW)
    fields = progress_fields(graded)
    assert set(fields) == {"interval", "repetition", "easiness_factor", "due_date", "consecutive_correct"}
    assert fields["interval"] == 1
    assert fields["repetition"] == 1
    assert abs(fields["easiness_factor"] - 2.5) < 1e-9
    assert fields["due_date"] == NOW + timedelta(days=1)
    assert fields["consecutive_correct"] == 1
