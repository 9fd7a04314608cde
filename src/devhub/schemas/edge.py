"""Relationship toggle schemas."""

from pydantic import BaseModel


class ToggleRequest(BaseModel):
    """Optional belief about the current edge state held by the caller."""

    currently_on: bool | None = None


class ToggleResponse(BaseModel):
    edge_type: str
    target_id: str
    active: bool
    changed: bool
    count: int | None = None
