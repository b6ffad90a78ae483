from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from ..core.clock import utcnow
from ..db.types import UTCTimestamp


class ProductivityGoal(SQLModel, table=True):
    __tablename__ = "productivity_goals"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    title: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    target_type: str = Field(nullable=False)
    target_value: float = Field(nullable=False)
    start_date: datetime = Field(nullable=False, sa_type=UTCTimestamp)
    end_date: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)
    achieved: bool = Field(default=False)
    progress: float = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)
