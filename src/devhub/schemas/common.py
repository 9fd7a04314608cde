"""Schemas shared across resources."""

from pydantic import BaseModel, ConfigDict


class AuthorSummary(BaseModel):
    """Minimal public identity shown next to authored content."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str | None
    full_name: str | None
    avatar_url: str | None
    display_name: str


class MessageResponse(BaseModel):
    message: str
