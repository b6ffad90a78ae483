from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import Any, Optional
from datetime import datetime

from ..core.clock import DEFAULT_TIME_RANGE, utcnow
from ..db.types import UTCTimestamp


class AnalyticsPreference(SQLModel, table=True):
    """Per-user analytics settings, created with defaults on first read."""
    __tablename__ = "analytics_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True, nullable=False)
    data_collection_enabled: bool = Field(default=True)
    default_time_range: str = Field(default=DEFAULT_TIME_RANGE)
    # Opaque layout blob owned by the dashboard client
    dashboard_layout: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)
