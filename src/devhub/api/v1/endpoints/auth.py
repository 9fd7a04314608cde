"""Authentication endpoints: registration, login, logout and the current account."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from devhub.api.v1.dependencies import AuthContextDep, CurrentIdentityDep, SessionDep
from devhub.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from devhub.schemas.profile import AccountView
from devhub.services import profiles, subscriptions, views

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep, auth: AuthContextDep) -> TokenResponse:
    """Create an account and return an access token for it."""
    result = auth.sign_up(
        db,
        payload.email,
        payload.password,
        username=payload.username,
        full_name=payload.full_name,
    )
    return TokenResponse(access_token=result.access_token, user_id=result.user_id)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep, auth: AuthContextDep) -> TokenResponse:
    result = auth.sign_in(db, payload.email, payload.password)
    return TokenResponse(access_token=result.access_token, user_id=result.user_id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def logout(identity: CurrentIdentityDep, db: SessionDep, auth: AuthContextDep) -> Response:
    """Revoke the session behind the presented token."""
    auth.sign_out(db, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AccountView)
async def me(identity: CurrentIdentityDep, db: SessionDep) -> AccountView:
    profile = profiles.get_profile(db, identity.user_id)
    view = views.profile_view(db, identity.user_id, identity.user_id)
    return AccountView(
        **view.model_dump(),
        email=profile.email,
        is_admin=profile.is_admin,
        last_username_change=profile.last_username_change,
        has_pro_access=subscriptions.has_pro_access(db, identity.user_id),
    )
