"""Profile schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from devhub.schemas.common import AuthorSummary


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile. Omitted fields are untouched."""

    username: str | None = Field(None, min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_-]+$")
    full_name: str | None = Field(None, max_length=120)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = None
    website: str | None = None
    github: str | None = None


class ProfileView(BaseModel):
    id: str
    username: str | None
    full_name: str | None
    display_name: str
    bio: str | None
    avatar_url: str | None
    website: str | None
    github: str | None
    followers_count: int
    following_count: int
    projects_count: int
    snippets_count: int
    created_at: datetime

    is_self: bool = False
    is_following: bool = False


class AccountView(ProfileView):
    """The signed-in user's own profile, including private fields."""

    email: str
    is_admin: bool
    last_username_change: datetime | None
    has_pro_access: bool


class FollowList(BaseModel):
    count: int
    items: list[AuthorSummary]


class ProAccessResponse(BaseModel):
    user_id: str
    has_pro_access: bool


class UsernameChangeStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_change: bool
    days_remaining: int
