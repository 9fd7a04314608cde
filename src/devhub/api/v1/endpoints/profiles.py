"""Profile endpoints, including the follow relationship."""

from __future__ import annotations

from fastapi import APIRouter

from devhub.api.v1.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    SessionDep,
    edge_response,
    viewer_id,
)
from devhub.schemas.content import ProjectView, SnippetView
from devhub.schemas.edge import ToggleRequest, ToggleResponse
from devhub.schemas.profile import (
    FollowList,
    ProAccessResponse,
    ProfileUpdate,
    ProfileView,
    UsernameChangeStatus,
)
from devhub.services import edges, profiles, subscriptions, views
from devhub.services.edges import EdgeType

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.patch("/me", response_model=ProfileView)
async def update_my_profile(
    payload: ProfileUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> ProfileView:
    """Update the caller's own profile. Username changes are rate limited."""
    profiles.update_profile(db, identity.user_id, payload.model_dump(exclude_unset=True))
    return views.profile_view(db, identity.user_id, identity.user_id)


@router.get("/me/username-status", response_model=UsernameChangeStatus)
async def my_username_status(identity: CurrentIdentityDep, db: SessionDep) -> UsernameChangeStatus:
    return profiles.username_change_status(profiles.get_profile(db, identity.user_id))


@router.get("/me/saved/projects", response_model=list[ProjectView])
async def my_saved_projects(identity: CurrentIdentityDep, db: SessionDep) -> list[ProjectView]:
    """Projects the caller has saved, most recently saved first."""
    return views.list_saved_projects(db, identity.user_id)


@router.get("/me/saved/snippets", response_model=list[SnippetView])
async def my_saved_snippets(identity: CurrentIdentityDep, db: SessionDep) -> list[SnippetView]:
    return views.list_saved_snippets(db, identity.user_id)


@router.get("/by-username/{username}", response_model=ProfileView)
async def get_profile_by_username(
    username: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> ProfileView:
    profile_id = profiles.get_profile_id_by_username(db, username)
    return views.profile_view(db, profile_id, viewer_id(identity))


@router.get("/{profile_id}", response_model=ProfileView)
async def get_profile(profile_id: str, db: SessionDep, identity: OptionalIdentityDep) -> ProfileView:
    return views.profile_view(db, profile_id, viewer_id(identity))


@router.put("/{profile_id}/follow", response_model=ToggleResponse)
async def follow(profile_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    """Follow a profile. Following twice is a no-op."""
    result = edges.add_edge(db, identity.user_id, EdgeType.FOLLOW, profile_id)
    return edge_response(db, result)


@router.delete("/{profile_id}/follow", response_model=ToggleResponse)
async def unfollow(profile_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    result = edges.remove_edge(db, identity.user_id, EdgeType.FOLLOW, profile_id)
    return edge_response(db, result)


@router.post("/{profile_id}/follow/toggle", response_model=ToggleResponse)
async def toggle_follow(
    profile_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.FOLLOW, profile_id, currently_on)
    return edge_response(db, result)


@router.get("/{profile_id}/followers", response_model=FollowList)
async def list_followers(profile_id: str, db: SessionDep) -> FollowList:
    return views.list_followers(db, profile_id)


@router.get("/{profile_id}/following", response_model=FollowList)
async def list_following(profile_id: str, db: SessionDep) -> FollowList:
    return views.list_following(db, profile_id)


@router.get("/{profile_id}/projects", response_model=list[ProjectView])
async def list_projects(
    profile_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> list[ProjectView]:
    profiles.get_profile(db, profile_id)
    return views.list_user_projects(db, profile_id, viewer_id(identity))


@router.get("/{profile_id}/snippets", response_model=list[SnippetView])
async def list_snippets(
    profile_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> list[SnippetView]:
    profiles.get_profile(db, profile_id)
    return views.list_user_snippets(db, profile_id, viewer_id(identity))


@router.get("/{profile_id}/pro-access", response_model=ProAccessResponse)
async def pro_access(profile_id: str, db: SessionDep) -> ProAccessResponse:
    profiles.get_profile(db, profile_id)
    return ProAccessResponse(
        user_id=profile_id,
        has_pro_access=subscriptions.has_pro_access(db, profile_id),
    )
