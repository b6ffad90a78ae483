from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from ..core.clock import isoformat_utc

# Always written out in UTC with a Z suffix
UTCDatetime = Annotated[datetime, PlainSerializer(isoformat_utc, return_type=str, when_used="json")]


class APIModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire.

    Request bodies are accepted in either spelling.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
