from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from models.line import Line, MIN_EASINESS_FACTOR

CORRECT_QUALITY = 4
INCORRECT_QUALITY = 1


def map_outcome_to_quality(correct: bool) -> int:
    """Map a binary self-grade to SM-2 quality (0-5)."""
    return CORRECT_QUALITY if correct else INCORRECT_QUALITY


def update_sm2(
    interval: int,
    repetition: int,
    easiness_factor: float,
    quality: int,
) -> Tuple[int, int, float]:
    """Update SM-2 parameters for one recall of the given quality."""
    if quality < 3:
        new_repetition = 0
        new_interval = 1
    else:
        if repetition == 0:
            new_interval = 1
        elif repetition == 1:
            new_interval = 6
        else:
            new_interval = round(interval * easiness_factor)
        new_repetition = repetition + 1
    new_ef = max(
        MIN_EASINESS_FACTOR,
        easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)),
    )
    return new_interval, new_repetition, new_ef


def grade_line(line: Line, correct: bool, now: Optional[datetime] = None) -> Line:
    """Return a new Line with SM-2 state, due date and streak advanced for one grade."""
    quality = map_outcome_to_quality(correct)
    new_interval, new_repetition, new_ef = update_sm2(
        line.interval, line.repetition, line.easiness_factor, quality
    )
    anchor = now or datetime.now(timezone.utc)
    return line.model_copy(
        update={
            "interval": new_interval,
            "repetition": new_repetition,
            "easiness_factor": new_ef,
            "due_date": anchor + timedelta(days=new_interval),
            "consecutive_correct": line.consecutive_correct + 1 if correct else 0,
        }
    )


def progress_fields(line: Line) -> Dict[str, Any]:
    """The per-line field set written back after grading."""
    return {
        "interval": line.interval,
        "repetition": line.repetition,
        "easiness_factor": line.easiness_factor,
        "due_date": line.due_date,
        "consecutive_correct": line.consecutive_correct,
    }
