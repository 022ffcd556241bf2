import math

import pytest

from models.line import Line
from utils.chunks import (
    MASTERY_THRESHOLD,
    chunk_summary,
    chunks_of,
    is_chunk_mastered,
    is_line_mastered,
    learning_state,
)
from utils.sm2 import grade_line


def _line(order: int, consecutive_correct: int = 0) -> Line:
    return Line(
        id=f"line-{order}",
        script_id="script-1",
        scene_id="scene-1",
        cue=f"Cue {order}",
        cue_character="Other",
        response=f"Response {order}",
        response_character="Me",
        order=order,
        consecutive_correct=consecutive_correct,
    )


def _seven(streaks=None):
    streaks = streaks or {}
    return [_line(order, streaks.get(order, 0)) for order in range(7)]


def test_mastery_threshold_is_three():
    assert MASTERY_THRESHOLD == 3
    assert not is_line_mastered(_line(0, 2))
    assert is_line_mastered(_line(0, 3))
    assert is_line_mastered(_line(0, 10))


def test_three_correct_grades_master_a_line_and_a_miss_resets():
    line = _line(0)
    for _ in range(2):
        line = grade_line(line, True)
    assert not is_line_mastered(line)
    line = grade_line(line, False)
    assert line.consecutive_correct == 0
    for _ in range(3):
        line = grade_line(line, True)
    assert is_line_mastered(line)


def test_empty_chunk_is_mastered():
    assert is_chunk_mastered([])


@pytest.mark.parametrize("count,size", [(0, 3), (1, 3), (6, 3), (7, 3), (10, 4), (5, 5), (12, 1)])
def test_chunk_partition_law(count, size):
    lines = [_line(order) for order in reversed(range(count))]
    chunks = chunks_of(lines, size)
    assert len(chunks) == math.ceil(count / size)
    for chunk in chunks[:-1]:
        assert len(chunk) == size
    if chunks:
        assert len(chunks[-1]) == (count % size or size)
    flattened = [line.order for chunk in chunks for line in chunk]
    assert flattened == list(range(count))


def test_chunks_of_rejects_non_positive_size():
    with pytest.raises(ValueError):
        chunks_of([_line(0)], 0)


def test_empty_ledger_is_complete():
    state = learning_state([], 5)
    assert state.phase == "complete"
    assert state.total_chunks == 0
    assert state.lines_to_review == []


def test_all_unmastered_starts_at_first_chunk():
    state = learning_state(_seven(), 3)
    assert [len(chunk) for chunk in chunks_of(_seven(), 3)] == [3, 3, 1]
    assert state.phase == "chunk"
    assert state.active_chunk_index == 0
    assert state.total_chunks == 3
    assert [line.order for line in state.lines_to_review] == [0, 1, 2]


def test_one_unmastered_line_holds_the_chunk():
    state = learning_state(_seven({0: 3, 1: 3}), 3)
    assert state.active_chunk_index == 0
    # the full chunk is returned, mastered lines included
    assert [line.order for line in state.lines_to_review] == [0, 1, 2]
    assert state.chunk_progress == [("line-0", 3), ("line-1", 3), ("line-2", 0)]


def test_mastered_chunk_advances():
    state = learning_state(_seven({0: 3, 1: 3, 2: 3}), 3)
    assert state.phase == "chunk"
    assert state.active_chunk_index == 1
    assert [line.order for line in state.lines_to_review] == [3, 4, 5]


def test_short_final_chunk_is_selected_like_any_other():
    state = learning_state(_seven({order: 3 for order in range(6)}), 3)
    assert state.active_chunk_index == 2
    assert [line.order for line in state.lines_to_review] == [6]


def test_all_mastered_is_complete():
    state = learning_state(_seven({order: 4 for order in range(7)}), 3)
    assert state.phase == "complete"
    assert state.is_complete
    assert state.lines_to_review == []
    assert state.total_chunks == 3


def test_earlier_unmastered_chunk_wins_over_later_progress():
    # chunk 1 fully mastered but chunk 0 is not
    state = learning_state(_seven({0: 3, 1: 0, 2: 3, 3: 3, 4: 3, 5: 3}), 3)
    assert state.active_chunk_index == 0


def test_active_chunk_is_never_preceded_by_an_unmastered_chunk():
    for mask in range(1 << 7):
        lines = _seven({order: 3 for order in range(7) if mask & (1 << order)})
        state = learning_state(lines, 3)
        if state.is_complete:
            continue
        for earlier in chunks_of(lines, 3)[:state.active_chunk_index]:
            assert is_chunk_mastered(earlier)


def test_learning_state_is_idempotent():
    lines = _seven({0: 3, 2: 1})
    assert learning_state(lines, 3) == learning_state(lines, 3)


def test_chunk_summary_labels():
    assert chunk_summary(0, 3, 3, 7) == ("Chunk 1 of 3", "Lines 1-3")
    assert chunk_summary(2, 3, 3, 7) == ("Chunk 3 of 3", "Lines 7-7")
