"""Community endpoints: discovery, membership, roles, bans and posts."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from devhub.api.v1.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    SessionDep,
    edge_response,
    viewer_id,
)
from devhub.schemas.community import (
    BanRequest,
    BanView,
    CommunityCreate,
    CommunityUpdate,
    CommunityView,
    MembershipView,
    MemberView,
    PostCreate,
    PostView,
    RoleUpdate,
)
from devhub.schemas.edge import ToggleRequest, ToggleResponse
from devhub.services import communities, edges, roles, views
from devhub.services.edges import EdgeType

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=list[CommunityView])
async def list_communities(
    db: SessionDep,
    identity: OptionalIdentityDep,
    limit: int = 50,
) -> list[CommunityView]:
    """List public communities, largest first."""
    return views.list_public_communities(db, viewer_id(identity), limit=limit)


@router.post("/", response_model=CommunityView, status_code=status.HTTP_201_CREATED)
async def create_community(
    payload: CommunityCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> CommunityView:
    community = communities.create_community(
        db,
        identity.user_id,
        payload.name,
        payload.description,
        is_public=payload.is_public,
        topics=payload.topics,
        avatar_url=payload.avatar_url,
    )
    return views.community_view(db, community.id, identity.user_id)


@router.get("/{community_id}", response_model=CommunityView)
async def get_community(
    community_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> CommunityView:
    return views.community_view(db, community_id, viewer_id(identity))


@router.patch("/{community_id}", response_model=CommunityView)
async def update_community(
    community_id: str,
    payload: CommunityUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> CommunityView:
    """Edit the community's details. Admins and the owner only."""
    communities.update_community(
        db, identity.user_id, community_id, payload.model_dump(exclude_unset=True)
    )
    return views.community_view(db, community_id, identity.user_id)


@router.delete("/{community_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_community(
    community_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> Response:
    communities.delete_community(db, identity.user_id, community_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{community_id}/membership", response_model=MembershipView)
async def get_membership(
    community_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> MembershipView:
    return views.membership_view(roles.get_membership(db, viewer_id(identity), community_id))


@router.put("/{community_id}/membership", response_model=ToggleResponse)
async def join(community_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    """Join a community. Joining twice is a no-op."""
    result = edges.add_edge(db, identity.user_id, EdgeType.COMMUNITY_MEMBERSHIP, community_id)
    return edge_response(db, result)


@router.delete("/{community_id}/membership", response_model=ToggleResponse)
async def leave(community_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    result = edges.remove_edge(db, identity.user_id, EdgeType.COMMUNITY_MEMBERSHIP, community_id)
    return edge_response(db, result)


@router.post("/{community_id}/membership/toggle", response_model=ToggleResponse)
async def toggle_membership(
    community_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(
        db, identity.user_id, EdgeType.COMMUNITY_MEMBERSHIP, community_id, currently_on
    )
    return edge_response(db, result)


@router.get("/{community_id}/members", response_model=list[MemberView])
async def list_members(community_id: str, db: SessionDep) -> list[MemberView]:
    return views.list_members(db, community_id)


@router.put("/{community_id}/members/{user_id}/role", response_model=MemberView)
async def set_role(
    community_id: str,
    user_id: str,
    payload: RoleUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> MemberView:
    communities.set_member_role(db, identity.user_id, community_id, user_id, payload.role)
    return next(m for m in views.list_members(db, community_id) if m.user_id == user_id)


@router.get("/{community_id}/bans", response_model=list[BanView])
async def list_bans(
    community_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> list[BanView]:
    bans = communities.list_bans(db, identity.user_id, community_id)
    return [
        BanView(
            community_id=ban.community_id,
            user_id=ban.user_id,
            banned_by=ban.banned_by,
            reason=ban.reason,
            created_at=ban.created_at,
        )
        for ban in bans
    ]


@router.put("/{community_id}/bans/{user_id}", response_model=BanView)
async def ban(
    community_id: str,
    user_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: BanRequest | None = None,
) -> BanView:
    """Ban a user; their membership is removed."""
    record = communities.ban_member(
        db, identity.user_id, community_id, user_id, payload.reason if payload else None
    )
    return BanView(
        community_id=record.community_id,
        user_id=record.user_id,
        banned_by=record.banned_by,
        reason=record.reason,
        created_at=record.created_at,
    )


@router.delete(
    "/{community_id}/bans/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def unban(
    community_id: str,
    user_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> Response:
    communities.unban_member(db, identity.user_id, community_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{community_id}/posts", response_model=list[PostView])
async def list_posts(
    community_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
    limit: int = 50,
) -> list[PostView]:
    """Get posts from a community, newest first."""
    return views.list_community_posts(db, community_id, viewer_id(identity), limit=limit)


@router.post(
    "/{community_id}/posts",
    response_model=PostView,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    community_id: str,
    payload: PostCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> PostView:
    post = communities.create_post(db, identity.user_id, community_id, payload.title, payload.content)
    return views.post_view(db, post.id, identity.user_id)
