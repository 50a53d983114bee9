import enum

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base, UTCDateTime
from app.errors import MalformedData
from app.models.user import User


class RepeatRule(str, enum.Enum):
    NEVER = "Never"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


# Stored representation of every rule. Both directions come from this one table.
REPEAT_TO_DB = {
    RepeatRule.NEVER: "Never",
    RepeatRule.DAILY: "Daily",
    RepeatRule.WEEKLY: "Weekly",
    RepeatRule.MONTHLY: "Monthly",
    RepeatRule.YEARLY: "Yearly",
}
REPEAT_FROM_DB = {stored: rule for rule, stored in REPEAT_TO_DB.items()}


def repeat_to_db(rule: RepeatRule) -> str:
    return REPEAT_TO_DB[RepeatRule(rule)]


def repeat_from_db(value: str) -> RepeatRule:
    try:
        return REPEAT_FROM_DB[value]
    except KeyError:
        raise MalformedData(f"unknown repeat rule in store: {value!r}") from None


class Todo(Base):
    __tablename__ = "todos"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    due = Column(UTCDateTime, nullable=True)
    repeat = Column(String(16), nullable=False, default=REPEAT_TO_DB[RepeatRule.NEVER])
    completed = Column(Boolean, nullable=False, default=False)

    owner = relationship(User, backref="todos")


class Reminder(Base):
    __tablename__ = "reminders"
    id = Column(Integer, primary_key=True, index=True)
    todo_id = Column(Integer, ForeignKey("todos.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(UTCDateTime, nullable=False)
