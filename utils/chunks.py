from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from models.line import Line

MASTERY_THRESHOLD = 3

PHASE_CHUNK = "chunk"
PHASE_COMPLETE = "complete"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LearningState:
    phase: str
    active_chunk_index: int
    total_chunks: int
    lines_to_review: List[Line] = field(default_factory=list)
    chunk_progress: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.phase == PHASE_COMPLETE


def is_line_mastered(line: Line) -> bool:
    return line.consecutive_correct >= MASTERY_THRESHOLD


def is_chunk_mastered(chunk: Sequence[Line]) -> bool:
    # all() of an empty chunk is True
    return all(is_line_mastered(line) for line in chunk)


def unmastered_lines(lines: Sequence[Line]) -> List[Line]:
    return [line for line in lines if not is_line_mastered(line)]


def chunks_of(lines: Sequence[Line], chunk_size: int) -> List[List[Line]]:
    """Sort lines by order and slice them into consecutive chunks of chunk_size."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    ordered = sorted(lines, key=lambda line: line.order)
    return [ordered[start:start + chunk_size] for start in range(0, len(ordered), chunk_size)]


def learning_state(lines: Sequence[Line], chunk_size: int) -> LearningState:
    """Derive the active chunk from current line state.

    The active chunk is the first one that is not fully mastered. Its full
    member list is returned in lines_to_review; narrowing it to the lines
    still in rotation is left to the selector.
    """
    chunks = chunks_of(lines, chunk_size)
    total_chunks = len(chunks)
    if not chunks:
        return LearningState(phase=PHASE_COMPLETE, active_chunk_index=0, total_chunks=0)

    for index, chunk in enumerate(chunks):
        if not is_chunk_mastered(chunk):
            logger.debug("Active chunk %d of %d", index + 1, total_chunks)
            return LearningState(
                phase=PHASE_CHUNK,
                active_chunk_index=index,
                total_chunks=total_chunks,
                lines_to_review=list(chunk),
                chunk_progress=[(line.id, line.consecutive_correct) for line in chunk],
            )

    return LearningState(
        phase=PHASE_COMPLETE,
        active_chunk_index=total_chunks - 1,
        total_chunks=total_chunks,
    )


def chunk_summary(chunk_index: int, total_chunks: int, chunk_size: int, total_lines: int) -> Tuple[str, str]:
    """Human labels for a chunk, e.g. ("Chunk 2 of 3", "Lines 4-6")."""
    start_line = chunk_index * chunk_size + 1
    end_line = min((chunk_index + 1) * chunk_size, total_lines)
    return f"Chunk {chunk_index + 1} of {total_chunks}", f"Lines {start_line}-{end_line}"
