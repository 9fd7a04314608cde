"""Community post endpoints: likes, comments and the live comment stream."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import StreamingResponse

from devhub.api.v1.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    SessionDep,
    edge_response,
    viewer_id,
)
from devhub.core.settings import settings
from devhub.models import CommunityComment
from devhub.schemas.comment import CommentCreate, CommentView
from devhub.schemas.community import PostUpdate, PostView
from devhub.schemas.edge import ToggleRequest, ToggleResponse
from devhub.services import change_feed, comments, communities, edges, views
from devhub.services.comments import CommentKind
from devhub.services.edges import EdgeType

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/{post_id}", response_model=PostView)
async def get_post(post_id: str, db: SessionDep, identity: OptionalIdentityDep) -> PostView:
    return views.post_view(db, post_id, viewer_id(identity))


@router.patch("/{post_id}", response_model=PostView)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> PostView:
    communities.update_post(db, identity.user_id, post_id, payload.title, payload.content)
    return views.post_view(db, post_id, identity.user_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_post(post_id: str, identity: CurrentIdentityDep, db: SessionDep) -> Response:
    communities.delete_post(db, identity.user_id, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{post_id}/like", response_model=ToggleResponse)
async def like(post_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.add_edge(db, identity.user_id, EdgeType.POST_LIKE, post_id))


@router.delete("/{post_id}/like", response_model=ToggleResponse)
async def unlike(post_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.remove_edge(db, identity.user_id, EdgeType.POST_LIKE, post_id))


@router.post("/{post_id}/like/toggle", response_model=ToggleResponse)
async def toggle_like(
    post_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.POST_LIKE, post_id, currently_on)
    return edge_response(db, result)


@router.get("/{post_id}/comments", response_model=list[CommentView])
async def list_comments(
    post_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> list[CommentView]:
    return comments.list_comments(db, CommentKind.POST, post_id, viewer_id(identity))


@router.post("/{post_id}/comments", response_model=CommentView, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> CommentView:
    return comments.add_comment(db, CommentKind.POST, post_id, identity.user_id, payload.content)


@router.delete(
    "/{post_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_comment(
    post_id: str,
    comment_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> Response:
    comments.delete_comment(db, CommentKind.POST, post_id, comment_id, identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{post_id}/comments/stream")
async def stream_comments(post_id: str, request: Request, db: SessionDep) -> StreamingResponse:
    """Server-Sent Events stream of comment inserts and deletes on a post."""
    views.post_view(db, post_id)
    # Release the read transaction before the stream starts.
    db.rollback()
    feed = change_feed.get_change_feed()
    subscription = feed.subscribe(CommunityComment.__tablename__, "post_id", post_id)
    return StreamingResponse(
        change_feed.stream(
            subscription,
            settings.change_feed_heartbeat_seconds,
            request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
