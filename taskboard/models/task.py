from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from enum import Enum

from ..core.clock import utcnow
from ..db.types import UTCTimestamp
from .tag import TaskTag


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


# Legacy spellings still sent by older clients
_STATUS_ALIASES = {
    "todo": TaskStatus.TODO,
    "pending": TaskStatus.TODO,
    "in-progress": TaskStatus.IN_PROGRESS,
    "in_progress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
    "completed": TaskStatus.DONE,
}


def normalize_status(value) -> TaskStatus:
    """Map any accepted status spelling to the canonical enum.

    Raises ValueError for anything unrecognized.
    """
    if isinstance(value, TaskStatus):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid status: {value!r}")
    alias = _STATUS_ALIASES.get(value.strip().lower())
    if alias is None:
        raise ValueError(f"Invalid status: {value!r}")
    return alias


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    project_id: Optional[int] = Field(
        default=None, foreign_key="projects.id", ondelete="CASCADE", nullable=True, index=True
    )
    title: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.TODO)
    priority: int = Field(default=1)
    due_date: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)
    started_at: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)
    completed_at: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)

    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)

    # Relationships
    project: Optional["Project"] = Relationship(back_populates="tasks")
    tags: List["Tag"] = Relationship(back_populates="tasks", link_model=TaskTag)
