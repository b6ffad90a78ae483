from pydantic import field_validator
from typing import Optional

from .base import APIModel, UTCDatetime


class ProjectCreate(APIModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Project name is required")
        return value


class ProjectUpdate(APIModel):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Project name cannot be empty")
        return value


class ProjectRead(APIModel):
    id: int
    user_id: str
    name: str
    description: Optional[str] = None
    created_at: UTCDatetime
    updated_at: UTCDatetime


class ProjectWithCount(ProjectRead):
    task_count: int = 0
