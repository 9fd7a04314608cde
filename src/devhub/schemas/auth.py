"""Authentication schemas."""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=256)
    username: str | None = Field(None, min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_-]+$")
    full_name: str | None = Field(None, max_length=120)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    """Issued access token together with the signed-in profile id."""

    access_token: str
    token_type: str = "bearer"
    user_id: str
