from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.todo import RepeatRule


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TodoBase(BaseModel):
    title: str = Field(max_length=255)
    description: str = ""
    due: Optional[datetime] = None
    reminder: list[datetime] = Field(default_factory=list)
    repeat: RepeatRule = RepeatRule.NEVER

    @field_validator("due")
    @classmethod
    def normalize_due(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v) if v is not None else None

    @field_validator("reminder")
    @classmethod
    def normalize_reminder(cls, v: list[datetime]) -> list[datetime]:
        return [_as_utc(ts) for ts in v]


class TodoCreate(TodoBase):
    pass


class TodoUpdate(TodoBase):
    # The path id is authoritative; a body id is accepted and ignored.
    id: Optional[int] = None
    completed: bool = False


class TodoOut(TodoBase):
    id: int
    completed: bool

    model_config = ConfigDict(from_attributes=True)
