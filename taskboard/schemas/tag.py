import re
from pydantic import field_validator

from .base import APIModel, UTCDatetime

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_name(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Tag name is required")
    return value


def _check_color(value: str) -> str:
    if not value or not COLOR_PATTERN.match(value):
        raise ValueError("Valid color in hex format is required")
    return value


class TagCreate(APIModel):
    name: str
    color: str

    check_name = field_validator("name")(_check_name)
    check_color = field_validator("color")(_check_color)


class TagUpdate(TagCreate):
    id: int


class TagRead(APIModel):
    id: int
    name: str
    color: str
    created_at: UTCDatetime
    updated_at: UTCDatetime


class TagWithCount(TagRead):
    task_count: int = 0


class TaskTagCreate(APIModel):
    task_id: int
    tag_id: int


class TaskTagRead(APIModel):
    id: int
    task_id: int
    tag_id: int
