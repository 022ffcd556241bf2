import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from models.line import Line


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def due_lines(lines: Sequence[Line], now: Optional[datetime] = None) -> List[Line]:
    """Lines whose long-horizon due date has passed, in script order."""
    current = _now(now)
    return sorted((line for line in lines if line.due_date <= current), key=lambda line: line.order)


def next_due_line(lines: Sequence[Line], now: Optional[datetime] = None) -> Optional[Line]:
    due = due_lines(lines, now)
    return due[0] if due else None


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def time_until_next_review(lines: Sequence[Line], now: Optional[datetime] = None) -> Optional[str]:
    """Describe how long until the earliest future due date, e.g. "3 days"."""
    current = _now(now)
    future = [line.due_date for line in lines if line.due_date > current]
    if not future:
        return None
    seconds = (min(future) - current).total_seconds()
    minutes = math.ceil(seconds / 60)
    hours = math.ceil(seconds / 3600)
    days = math.ceil(seconds / 86400)
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    return _plural(days, "day")
