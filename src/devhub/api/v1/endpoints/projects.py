"""Project endpoints: publishing, likes, saves, views and comments."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from devhub.api.v1.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    SessionDep,
    edge_response,
    viewer_id,
)
from devhub.models import Project
from devhub.schemas.comment import CommentCreate, CommentView
from devhub.schemas.content import ProjectCreate, ProjectUpdate, ProjectView, ViewCountResponse
from devhub.schemas.edge import ToggleRequest, ToggleResponse
from devhub.services import comments, content, edges, views
from devhub.services.comments import CommentKind
from devhub.services.edges import EdgeType

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=ProjectView, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> ProjectView:
    project = content.create_project(db, identity.user_id, **payload.model_dump())
    return views.project_view(db, project.id, identity.user_id)


@router.get("/{project_id}", response_model=ProjectView)
async def get_project(project_id: str, db: SessionDep, identity: OptionalIdentityDep) -> ProjectView:
    return views.project_view(db, project_id, viewer_id(identity))


@router.patch("/{project_id}", response_model=ProjectView)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> ProjectView:
    content.update_project(db, identity.user_id, project_id, payload.model_dump(exclude_unset=True))
    return views.project_view(db, project_id, identity.user_id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_project(project_id: str, identity: CurrentIdentityDep, db: SessionDep) -> Response:
    content.delete_project(db, identity.user_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/views", response_model=ViewCountResponse)
async def record_view(project_id: str, db: SessionDep) -> ViewCountResponse:
    """Count one view of the project."""
    total = content.record_view(db, Project, project_id)
    return ViewCountResponse(id=project_id, views_count=total)


@router.put("/{project_id}/like", response_model=ToggleResponse)
async def like(project_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.add_edge(db, identity.user_id, EdgeType.LIKE_PROJECT, project_id))


@router.delete("/{project_id}/like", response_model=ToggleResponse)
async def unlike(project_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(
        db, edges.remove_edge(db, identity.user_id, EdgeType.LIKE_PROJECT, project_id)
    )


@router.post("/{project_id}/like/toggle", response_model=ToggleResponse)
async def toggle_like(
    project_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.LIKE_PROJECT, project_id, currently_on)
    return edge_response(db, result)


@router.put("/{project_id}/save", response_model=ToggleResponse)
async def save(project_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(db, edges.add_edge(db, identity.user_id, EdgeType.SAVE_PROJECT, project_id))


@router.delete("/{project_id}/save", response_model=ToggleResponse)
async def unsave(project_id: str, identity: CurrentIdentityDep, db: SessionDep) -> ToggleResponse:
    return edge_response(
        db, edges.remove_edge(db, identity.user_id, EdgeType.SAVE_PROJECT, project_id)
    )


@router.post("/{project_id}/save/toggle", response_model=ToggleResponse)
async def toggle_save(
    project_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
    payload: ToggleRequest | None = None,
) -> ToggleResponse:
    currently_on = payload.currently_on if payload else None
    result = edges.toggle_edge(db, identity.user_id, EdgeType.SAVE_PROJECT, project_id, currently_on)
    return edge_response(db, result)


@router.get("/{project_id}/comments", response_model=list[CommentView])
async def list_comments(
    project_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> list[CommentView]:
    return comments.list_comments(db, CommentKind.PROJECT, project_id, viewer_id(identity))


@router.post(
    "/{project_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    project_id: str,
    payload: CommentCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> CommentView:
    return comments.add_comment(db, CommentKind.PROJECT, project_id, identity.user_id, payload.content)


@router.delete(
    "/{project_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_comment(
    project_id: str,
    comment_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> Response:
    comments.delete_comment(db, CommentKind.PROJECT, project_id, comment_id, identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
