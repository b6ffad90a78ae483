from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from ..core.clock import utcnow
from ..db.types import UTCTimestamp


class User(SQLModel, table=True):
    """Profile row mirrored from the identity provider's token claims."""
    __tablename__ = "users"

    # Subject of the identity provider's token
    id: str = Field(primary_key=True)
    email: str = Field(default="", index=True, nullable=False)
    name: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCTimestamp)
