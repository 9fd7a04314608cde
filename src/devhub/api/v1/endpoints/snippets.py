"""Snippet endpoints: sharing, likes, saves, views and comments."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from devhub.api.v1.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    SessionDep,
    edge_response,
    viewer_id,
)
from devhub.models import Snippet
from devhub.schemas.comment import CommentCreate, CommentView
from devhub.schemas.content import SnippetCreate, SnippetUpdate, SnippetView, ViewCountResponse
from devhub.schemas.edge import ToggleRequest, ToggleResponse
from devhub.services import comments, content, edges, views
from devhub.services.comments import CommentKind
from devhub.services.edges import EdgeType

router = APIRouter(prefix="/snippets", tags=["snippets"])


@router.post("/", response_model=SnippetView, status_code=status.HTTP_201_CREATED)
async def create_snippet(
    payload: SnippetCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> SnippetView:
    snippet = content.create_snippet(db, identity.user_id, **payload.model_dump())
    return views.snippet_view(db, snippet.id, identity.user_id)


@router.get("/{snippet_id}", response_model=SnippetView)
async def get_snippet(snippet_id: str, db: SessionDep, identity: OptionalIdentityDep) -> SnippetView:
    return views.snippet_view(db, snippet_id, viewer_id(identity))


@router.patch("/{snippet_id}", response_model=SnippetView)
async def update_snippet(
    snippet_id: str,
    payload: SnippetUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> SnippetView:
    content.update_snippet(db, identity.user_id, snippet_id, payload.model_dump(exclude_unset=True))
    return views.snippet_view(db, snippet_id, identity.user_id)


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_snippet(snippet_id: str, identity: CurrentIdentityDep, db: SessionDep) -> Response:
    content.delete_snippet(db, identity.user_id, snippet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{snippet_id}/views", response_model=ViewCountResponse)
async def record_view(snippet_id: str, db: SessionDep) -> ViewCountResponse:
    """Count one view of the snippet."""
    total = content.record_view(db, Snippet, snippet_id)
    return ViewCountResponse(id=snippet_id, views_count=total)


@router.put("/{snippet_id}/like", response_model=ToggleResponse)
async def like(snippet_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.add_edge(db, identity.user_id, EdgeType.LIKE_SNIPPET, snippet_id))


@router.delete("/{snippet_id}/like", response_model=ToggleResponse)
async def unlike(snippet_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(
        db, edges.remove_edge(db, identity.user_id, EdgeType.LIKE_SNIPPET, snippet_id)
    )


@router.post("/{snippet_id}/like/toggle", response_model=ToggleResponse)
async def toggle_like(
    snippet_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.LIKE_SNIPPET, snippet_id, currently_on)
    return edge_response(db, result)


@router.put("/{snippet_id}/save", response_model=ToggleResponse)
async def save(snippet_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.add_edge(db, identity.user_id, EdgeType.SAVE_SNIPPET, snippet_id))


@router.delete("/{snippet_id}/save", response_model=ToggleResponse)
async def unsave(snippet_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(
        db, edges.remove_edge(db, identity.user_id, EdgeType.SAVE_SNIPPET, snippet_id)
    )


@router.post("/{snippet_id}/save/toggle", response_model=ToggleResponse)
async def toggle_save(
    snippet_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.SAVE_SNIPPET, snippet_id, currently_on)
    return edge_response(db, result)


@router.get("/{snippet_id}/comments", response_model=list[CommentView])
async def list_comments(
    snippet_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> list[CommentView]:
    return comments.list_comments(db, CommentKind.SNIPPET, snippet_id, viewer_id(identity))


@router.post(
    "/{snippet_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    snippet_id: str,
    payload: CommentCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> CommentView:
    return comments.add_comment(db, CommentKind.SNIPPET, snippet_id, identity.user_id, payload.content)


@router.delete(
    "/{snippet_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_comment(
    snippet_id: str,
    comment_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> Response:
    comments.delete_comment(db, CommentKind.SNIPPET, snippet_id, comment_id, identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
