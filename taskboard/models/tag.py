from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from ..core.clock import utcnow
from ..db.types import UTCTimestamp


class TaskTag(SQLModel, table=True):
    """Association row between a task and a tag."""
    __tablename__ = "task_tags"
    __table_args__ = (UniqueConstraint("task_id", "tag_id", name="uq_task_tag"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", ondelete="CASCADE", nullable=False, index=True)
    tag_id: int = Field(foreign_key="tags.id", ondelete="CASCADE", nullable=False, index=True)


class Tag(SQLModel, table=True):
    __tablename__ = "tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Tags are global, names are unique across all users
    name: str = Field(unique=True, index=True, nullable=False)
    color: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)

    tasks: List["Task"] = Relationship(back_populates="tags", link_model=TaskTag)
