from pydantic import field_validator
from typing import Optional

from ..core.clock import to_utc
from .base import APIModel, UTCDatetime


class GoalCreate(APIModel):
    title: str
    description: Optional[str] = None
    target_type: str
    target_value: float
    start_date: UTCDatetime
    end_date: Optional[UTCDatetime] = None

    @field_validator("title", "target_type")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title, target type, target value, and start date are required")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_utc(cls, value):
        return to_utc(value) if value is not None else None


class GoalUpdate(APIModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    target_type: Optional[str] = None
    target_value: Optional[float] = None
    start_date: Optional[UTCDatetime] = None
    end_date: Optional[UTCDatetime] = None
    achieved: Optional[bool] = None
    progress: Optional[float] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_utc(cls, value):
        return to_utc(value) if value is not None else None


class GoalRead(APIModel):
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    target_type: str
    target_value: float
    start_date: UTCDatetime
    end_date: Optional[UTCDatetime] = None
    achieved: bool
    progress: float
    created_at: UTCDatetime
    updated_at: UTCDatetime
