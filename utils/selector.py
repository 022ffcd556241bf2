from typing import Optional, Sequence

from models.line import Line
from utils.chunks import MASTERY_THRESHOLD, unmastered_lines


def next_line(active_chunk_lines: Sequence[Line], rotation_cursor: int) -> Optional[Line]:
    """Pick the next line round-robin over the unmastered lines of the active chunk."""
    rotation = sorted(unmastered_lines(active_chunk_lines), key=lambda line: line.order)
    if not rotation:
        return None
    return rotation[rotation_cursor % len(rotation)]


def rotation_cursor(active_chunk_lines: Sequence[Line], last_graded_order: Optional[int]) -> int:
    """Cursor for the line after the one graded last, counted in the current rotation.

    A line that was just mastered has already left the rotation, so the
    count lands on its successor instead of skipping one.
    """
    if last_graded_order is None:
        return 0
    return sum(1 for line in unmastered_lines(active_chunk_lines) if line.order <= last_graded_order)


def display_streak(line: Line) -> int:
    return min(line.consecutive_correct, MASTERY_THRESHOLD)
