from pydantic import BaseModel


class GradeSubmit(BaseModel):
    """A strictly binary self-grade for one presented line."""

    line_id: str
    correct: bool
