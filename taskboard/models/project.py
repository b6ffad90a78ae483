from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from ..core.clock import utcnow
from ..db.types import UTCTimestamp


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    name: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)

    # Relationship to tasks
    tasks: List["Task"] = Relationship(back_populates="project")
