"""Community, membership and community post schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from devhub.schemas.common import AuthorSummary


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str = Field(..., min_length=3, max_length=80)
    description: str = Field("", max_length=2000)
    is_public: bool = True
    topics: list[str] = Field(default_factory=list)
    avatar_url: str | None = None


class CommunityUpdate(BaseModel):
    """Community details an admin may change. Omitted fields are untouched."""

    name: str | None = Field(None, min_length=3, max_length=80)
    description: str | None = Field(None, max_length=2000)
    is_public: bool | None = None
    topics: list[str] | None = None
    avatar_url: str | None = None


class MembershipView(BaseModel):
    is_member: bool
    role: str | None = None
    is_creator: bool = False
    affordance: Literal["join", "leave", "manage"] = "join"


class CommunityView(BaseModel):
    id: str
    name: str
    description: str
    creator_id: str
    is_public: bool
    topics: list[str]
    avatar_url: str | None
    members_count: int
    posts_count: int
    created_at: datetime
    creator: AuthorSummary | None

    membership: MembershipView | None = None
    can_manage: bool = False
    can_delete: bool = False


class MemberView(BaseModel):
    user_id: str
    role: str
    joined_at: datetime
    profile: AuthorSummary | None


class RoleUpdate(BaseModel):
    role: Literal["member", "moderator", "admin"]


class BanRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BanView(BaseModel):
    community_id: str
    user_id: str
    banned_by: str
    reason: str | None
    created_at: datetime


class PostCreate(BaseModel):
    """Schema for publishing a post inside a community."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=20_000)


class PostUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1, max_length=20_000)


class PostView(BaseModel):
    id: str
    community_id: str
    user_id: str
    title: str
    content: str
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None

    is_liked: bool = False
    can_delete: bool = False
