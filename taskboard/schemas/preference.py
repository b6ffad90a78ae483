from pydantic import field_validator
from typing import Any, Optional

from ..core.clock import TIME_RANGES
from .base import APIModel, UTCDatetime


class PreferenceUpdate(APIModel):
    data_collection_enabled: Optional[bool] = None
    default_time_range: Optional[str] = None
    dashboard_layout: Optional[Any] = None

    @field_validator("default_time_range")
    @classmethod
    def known_time_range(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in TIME_RANGES:
            raise ValueError("Invalid time range. Must be one of: " + ", ".join(TIME_RANGES))
        return value


class PreferenceRead(APIModel):
    id: int
    user_id: str
    data_collection_enabled: bool
    default_time_range: str
    dashboard_layout: Optional[Any] = None
    created_at: UTCDatetime
    updated_at: UTCDatetime
