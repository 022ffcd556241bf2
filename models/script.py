from pydantic import BaseModel, Field, validator
from datetime import datetime

from config import DEFAULT_CHUNK_SIZE


class ScriptBase(BaseModel):
    title: str
    raw_markdown: str
    my_character: str
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)


class ScriptCreate(BaseModel):
    raw_markdown: str
    my_character: str
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)

    @validator('raw_markdown', 'my_character')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Value is required")
        return v


class Script(ScriptBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Scene(BaseModel):
    id: str
    script_id: str
    name: str
    order: int = Field(ge=0)

    class Config:
        from_attributes = True
