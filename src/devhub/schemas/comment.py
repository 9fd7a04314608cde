"""Comment schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from devhub.schemas.common import AuthorSummary


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentView(BaseModel):
    id: str
    parent_id: str
    user_id: str
    content: str
    created_at: datetime
    author: AuthorSummary | None

    can_delete: bool = False
