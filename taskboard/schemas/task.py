from pydantic import field_validator
from typing import List, Optional
from datetime import datetime

from ..core.clock import to_utc
from ..models.task import TaskStatus, normalize_status
from .base import APIModel, UTCDatetime
from .tag import TagRead


def _status_or_none(value):
    if value is None:
        return None
    return normalize_status(value)


def _datetime_or_none(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return to_utc(value)


class TaskCreate(APIModel):
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: int = 1
    due_date: Optional[UTCDatetime] = None
    project_id: Optional[int] = None
    tag_ids: Optional[List[int]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, value):
        if value is None:
            return TaskStatus.TODO
        return normalize_status(value)

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, value):
        return _datetime_or_none(value)


class TaskUpdate(APIModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[int] = None
    due_date: Optional[UTCDatetime] = None
    project_id: Optional[int] = None
    tag_ids: Optional[List[int]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Title cannot be empty")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, value):
        return _status_or_none(value)

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, value):
        return _datetime_or_none(value)


class ProjectRef(APIModel):
    id: int
    name: str


class TaskRead(APIModel):
    id: int
    user_id: str
    project_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: int
    due_date: Optional[UTCDatetime] = None
    started_at: Optional[UTCDatetime] = None
    completed_at: Optional[UTCDatetime] = None
    created_at: UTCDatetime
    updated_at: UTCDatetime
    project: Optional[ProjectRef] = None
    tags: List[TagRead] = []
