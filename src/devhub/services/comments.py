"""Comments on projects, snippets and community posts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from devhub.db.session import transaction
from devhub.models import (
    CommunityComment,
    CommunityPost,
    Project,
    ProjectComment,
    Snippet,
    SnippetComment,
)
from devhub.schemas.comment import CommentView
from devhub.services import counters, roles
from devhub.services.change_feed import OP_DELETE, OP_INSERT, ChangeEvent, publish
from devhub.services.counters import CounterRef
from devhub.services.errors import (
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    require_actor,
)
from devhub.services.view_cache import get_view_cache
from devhub.services.views import author_summary

logger = logging.getLogger(__name__)


class CommentKind(StrEnum):
    PROJECT = "project"
    SNIPPET = "snippet"
    POST = "post"


@dataclass(frozen=True)
class CommentTarget:
    model: Any
    parent_model: Any
    parent_column: str
    counter: CounterRef
    label: str

    @property
    def parent_attr(self) -> Any:
        return getattr(self.model, self.parent_column)


COMMENT_TARGETS: dict[CommentKind, CommentTarget] = {
    CommentKind.PROJECT: CommentTarget(
        ProjectComment, Project, "project_id", counters.PROJECT_COMMENTS, "Project"
    ),
    CommentKind.SNIPPET: CommentTarget(
        SnippetComment, Snippet, "snippet_id", counters.SNIPPET_COMMENTS, "Snippet"
    ),
    CommentKind.POST: CommentTarget(
        CommunityComment, CommunityPost, "post_id", counters.POST_COMMENTS, "Post"
    ),
}


def _to_view(target: CommentTarget, comment: Any, session: Session, can_delete: bool) -> CommentView:
    return CommentView(
        id=comment.id,
        parent_id=getattr(comment, target.parent_column),
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        author=author_summary(session, comment.user_id),
        can_delete=can_delete,
    )


def _event(target: CommentTarget, op: str, comment: Any) -> ChangeEvent:
    parent_id = getattr(comment, target.parent_column)
    return ChangeEvent(
        table=target.model.__tablename__,
        op=op,
        row_id=comment.id,
        keys={target.parent_column: parent_id},
        payload={
            "user_id": comment.user_id,
            "content": comment.content,
            "created_at": comment.created_at.isoformat() if comment.created_at else None,
        },
    )


def _post_membership(session: Session, actor_id: str | None, post_id: str) -> roles.MembershipStatus:
    community_id = session.scalar(
        select(CommunityPost.community_id).where(CommunityPost.id == post_id)
    )
    if community_id is None:
        return roles.NOT_A_MEMBER
    return roles.get_membership(session, actor_id, community_id)


def add_comment(
    session: Session,
    kind: CommentKind | str,
    parent_id: str,
    actor_id: str | None,
    content: str,
) -> CommentView:
    """Add a comment and bump the parent's ``comments_count`` in one transaction."""
    actor_id = require_actor(actor_id)
    target = COMMENT_TARGETS[CommentKind(kind)]
    body = (content or "").strip()
    if not body:
        raise InvalidOperationError("Comment cannot be empty")

    with transaction(session):
        parent = session.scalar(
            select(target.parent_model.id).where(target.parent_model.id == parent_id)
        )
        if parent is None:
            raise NotFoundError(f"{target.label} not found")
        comment = target.model(user_id=actor_id, content=body, **{target.parent_column: parent_id})
        session.add(comment)
        session.flush()
        counters.increment(session, target.counter, parent_id)

    get_view_cache().invalidate(target.counter.table, parent_id)
    publish(_event(target, OP_INSERT, comment))
    logger.info("Comment %s added to %s %s by %s", comment.id, kind, parent_id, actor_id)
    return _to_view(target, comment, session, can_delete=True)


def delete_comment(
    session: Session,
    kind: CommentKind | str,
    parent_id: str,
    comment_id: str,
    actor_id: str | None,
) -> None:
    """Delete a comment and decrement the parent's ``comments_count`` in one transaction.

    The comment must belong to ``parent_id``. Authors may always delete their
    comments. On community posts moderators, admins and the community creator
    may delete any comment.
    """
    actor_id = require_actor(actor_id)
    kind = CommentKind(kind)
    target = COMMENT_TARGETS[kind]

    with transaction(session):
        comment = session.get(target.model, comment_id)
        if comment is None or getattr(comment, target.parent_column) != parent_id:
            raise NotFoundError("Comment not found")
        allowed = comment.user_id == actor_id
        if not allowed and kind is CommentKind.POST:
            status = _post_membership(session, actor_id, comment.post_id)
            allowed = roles.can_delete_content(actor_id, comment.user_id, status)
        if not allowed:
            raise PermissionDeniedError("You can only delete your own comments")
        event = _event(target, OP_DELETE, comment)
        session.delete(comment)
        session.flush()
        counters.decrement(session, target.counter, parent_id)

    get_view_cache().invalidate(target.counter.table, parent_id)
    publish(event)
    logger.info("Comment %s deleted from %s %s by %s", comment_id, kind, parent_id, actor_id)


def list_comments(
    session: Session,
    kind: CommentKind | str,
    parent_id: str,
    viewer_id: str | None = None,
) -> list[CommentView]:
    """Return a parent's comments, newest first."""
    kind = CommentKind(kind)
    target = COMMENT_TARGETS[kind]
    exists = session.scalar(select(target.parent_model.id).where(target.parent_model.id == parent_id))
    if exists is None:
        raise NotFoundError(f"{target.label} not found")

    status = roles.NOT_A_MEMBER
    if viewer_id and kind is CommentKind.POST:
        status = _post_membership(session, viewer_id, parent_id)

    comments = session.scalars(
        select(target.model)
        .where(target.parent_attr == parent_id)
        .order_by(target.model.created_at.desc())
    ).all()
    return [
        _to_view(
            target,
            comment,
            session,
            can_delete=roles.can_delete_content(viewer_id, comment.user_id, status),
        )
        for comment in comments
    ]
