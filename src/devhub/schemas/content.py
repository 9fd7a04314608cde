"""Project and snippet schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from devhub.schemas.common import AuthorSummary


class ProjectCreate(BaseModel):
    """Schema for publishing a project."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    content: str = Field("", max_length=100_000)
    github_url: str | None = None
    live_url: str | None = None
    technologies: list[str] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """Fields the owner may change on a project. Omitted fields are untouched."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    content: str | None = Field(None, max_length=100_000)
    github_url: str | None = None
    live_url: str | None = None
    technologies: list[str] | None = None


class SnippetCreate(BaseModel):
    """Schema for sharing a code snippet."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1, max_length=40)
    tags: list[str] = Field(default_factory=list)


class SnippetUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    code: str | None = Field(None, min_length=1)
    language: str | None = Field(None, min_length=1, max_length=40)
    tags: list[str] | None = None


class ProjectView(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    content: str
    github_url: str | None
    live_url: str | None
    technologies: list[str]
    likes_count: int
    comments_count: int
    views_count: int
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None

    is_liked: bool = False
    is_saved: bool = False
    is_owner: bool = False
    can_delete: bool = False


class SnippetView(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    code: str
    language: str
    tags: list[str]
    likes_count: int
    comments_count: int
    views_count: int
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None

    is_liked: bool = False
    is_saved: bool = False
    is_owner: bool = False
    can_delete: bool = False


class ViewCountResponse(BaseModel):
    id: str
    views_count: int
