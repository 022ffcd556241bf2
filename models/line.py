from pydantic import BaseModel, Field, validator
from datetime import datetime, timezone

SCENE_OPENS_CUE = "(Scene opens)"
MIN_EASINESS_FACTOR = 1.3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Line(BaseModel):
    """One reviewable unit: the learner's response and the cue that precedes it."""

    id: str
    script_id: str
    scene_id: str
    cue: str
    cue_character: str = ""
    response: str
    response_character: str
    order: int
    # Long-horizon SM-2 state
    interval: int = Field(default=0, ge=0)
    repetition: int = Field(default=0, ge=0)
    easiness_factor: float = 2.5
    due_date: datetime = Field(default_factory=_utcnow)
    # Short-horizon chunk mastery
    consecutive_correct: int = Field(default=0, ge=0)

    @validator('order')
    def validate_order(cls, v):
        if v < 0:
            raise ValueError("Line order must be zero or greater")
        return v

    @validator('easiness_factor')
    def validate_easiness_factor(cls, v):
        if v < MIN_EASINESS_FACTOR:
            raise ValueError(f"Easiness factor must be at least {MIN_EASINESS_FACTOR}")
        return v

    class Config:
        from_attributes = True
