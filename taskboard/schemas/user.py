from pydantic import BaseModel
from typing import Optional


class Identity(BaseModel):
    """Verified caller, as vouched for by the identity provider."""
    user_id: str
    email: str = ""
    name: Optional[str] = None
    avatar_url: Optional[str] = None
