from pydantic import field_validator
from typing import Optional

from ..models.activity import ActivityAction
from ..models.task import TaskStatus, normalize_status
from .base import APIModel, UTCDatetime


class ActivityCreate(APIModel):
    task_id: int
    action: ActivityAction
    old_status: Optional[TaskStatus] = None
    new_status: Optional[TaskStatus] = None
    old_priority: Optional[int] = None
    new_priority: Optional[int] = None

    @field_validator("old_status", "new_status", mode="before")
    @classmethod
    def canonical_status(cls, value):
        if value is None:
            return None
        return normalize_status(value)


class ActivityRead(APIModel):
    id: int
    task_id: int
    user_id: str
    action: ActivityAction
    old_status: Optional[TaskStatus] = None
    new_status: Optional[TaskStatus] = None
    old_priority: Optional[int] = None
    new_priority: Optional[int] = None
    timestamp: UTCDatetime
    task_title: Optional[str] = None
