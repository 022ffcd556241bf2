from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from models.line import Line
from utils.chunks import chunk_summary, is_line_mastered, learning_state
from utils.selector import display_streak, next_line, rotation_cursor


@dataclass(frozen=True)
class LineIndicator:
    line_id: str
    consecutive_correct: int
    mastered: bool
    current: bool


@dataclass(frozen=True)
class ReviewView:
    complete: bool
    total_lines: int
    total_chunks: int
    chunk_index: int
    chunk_label: str = ""
    line_range: str = ""
    line: Optional[Line] = None
    streak: int = 0
    indicators: List[LineIndicator] = field(default_factory=list)


def build_review_view(
    lines: Sequence[Line],
    chunk_size: int,
    last_graded_order: Optional[int] = None,
) -> ReviewView:
    """Everything the review card needs, derived from a fresh read of the ledger."""
    state = learning_state(lines, chunk_size)
    if state.is_complete:
        return ReviewView(
            complete=True,
            total_lines=len(lines),
            total_chunks=state.total_chunks,
            chunk_index=state.active_chunk_index,
        )

    cursor = rotation_cursor(state.lines_to_review, last_graded_order)
    selected = next_line(state.lines_to_review, cursor)
    label, line_range = chunk_summary(
        state.active_chunk_index, state.total_chunks, chunk_size, len(lines)
    )
    indicators = [
        LineIndicator(
            line_id=line.id,
            consecutive_correct=line.consecutive_correct,
            mastered=is_line_mastered(line),
            current=selected is not None and line.id == selected.id,
        )
        for line in state.lines_to_review
    ]
    return ReviewView(
        complete=False,
        total_lines=len(lines),
        total_chunks=state.total_chunks,
        chunk_index=state.active_chunk_index,
        chunk_label=label,
        line_range=line_range,
        line=selected,
        streak=display_streak(selected) if selected else 0,
        indicators=indicators,
    )
