from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from ..core.clock import utcnow
from ..db.types import UTCTimestamp
from .task import TaskStatus


class ActivityAction(str, Enum):
    created = "created"
    status_changed = "status_changed"
    deleted = "deleted"


class TaskActivity(SQLModel, table=True):
    """Append-only audit record of a task lifecycle event.

    ``task_id`` carries no foreign key: the log outlives the tasks it
    describes, including their ``deleted`` record.
    """
    __tablename__ = "task_activities"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(index=True, nullable=False)
    user_id: str = Field(index=True, nullable=False)
    action: ActivityAction = Field(nullable=False)
    old_status: Optional[TaskStatus] = Field(default=None)
    new_status: Optional[TaskStatus] = Field(default=None)
    old_priority: Optional[int] = Field(default=None)
    new_priority: Optional[int] = Field(default=None)
    timestamp: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCTimestamp)
