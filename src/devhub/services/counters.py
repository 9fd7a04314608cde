"""Denormalized counters stored on target entities.

Counters approximate the number of live edge/comment rows that reference an
entity. They are only ever moved by one ``UPDATE`` statement issued inside the
same transaction as the row mutation they mirror, and can be recomputed from
the source rows with :func:`recount` / :func:`reconcile_all`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from devhub.models import (
    Community,
    CommunityComment,
    CommunityMember,
    CommunityPost,
    CommunityPostLike,
    Profile,
    Project,
    ProjectComment,
    ProjectLike,
    Snippet,
    SnippetComment,
    SnippetLike,
    UserFollow,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterRef:
    """A ``(model, column)`` pair naming one denormalized counter."""

    model: Any
    column: str

    def __post_init__(self) -> None:
        if not self.column.endswith("_count") or not hasattr(self.model, self.column):
            raise ValueError(f"{self.model.__tablename__}.{self.column} is not a counter column")

    @property
    def table(self) -> str:
        return self.model.__tablename__

    @property
    def attribute(self) -> Any:
        return getattr(self.model, self.column)

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"


@dataclass(frozen=True)
class CounterDrift:
    """A counter whose stored value disagreed with its source rows."""

    table: str
    column: str
    entity_id: str
    stored: int
    actual: int


FOLLOWERS = CounterRef(Profile, "followers_count")
FOLLOWING = CounterRef(Profile, "following_count")
PROJECT_LIKES = CounterRef(Project, "likes_count")
PROJECT_COMMENTS = CounterRef(Project, "comments_count")
PROJECT_VIEWS = CounterRef(Project, "views_count")
SNIPPET_LIKES = CounterRef(Snippet, "likes_count")
SNIPPET_COMMENTS = CounterRef(Snippet, "comments_count")
SNIPPET_VIEWS = CounterRef(Snippet, "views_count")
COMMUNITY_MEMBERS = CounterRef(Community, "members_count")
COMMUNITY_POSTS = CounterRef(Community, "posts_count")
POST_LIKES = CounterRef(CommunityPost, "likes_count")
POST_COMMENTS = CounterRef(CommunityPost, "comments_count")

# counter -> (source model, foreign key column referencing the counted entity)
COUNTER_SOURCES: dict[CounterRef, tuple[Any, str]] = {
    FOLLOWERS: (UserFollow, "following_id"),
    FOLLOWING: (UserFollow, "follower_id"),
    PROJECT_LIKES: (ProjectLike, "project_id"),
    PROJECT_COMMENTS: (ProjectComment, "project_id"),
    SNIPPET_LIKES: (SnippetLike, "snippet_id"),
    SNIPPET_COMMENTS: (SnippetComment, "snippet_id"),
    COMMUNITY_MEMBERS: (CommunityMember, "community_id"),
    COMMUNITY_POSTS: (CommunityPost, "community_id"),
    POST_LIKES: (CommunityPostLike, "post_id"),
    POST_COMMENTS: (CommunityComment, "post_id"),
}


def clamp(value: int | None) -> int:
    """Return a displayable counter value, never negative."""
    return max(0, int(value or 0))


def adjust(session: Session, ref: CounterRef, entity_id: str, delta: int) -> int:
    """Move a counter by exactly one step and return the affected row count.

    Decrements floor at zero in SQL so concurrent writers cannot drive the
    stored value negative.
    """
    if delta not in (1, -1):
        raise ValueError("Counters move by +1 or -1 only")

    column = ref.attribute
    if delta > 0:
        new_value = column + 1
    else:
        new_value = case((column > 0, column - 1), else_=0)

    stmt = (
        update(ref.model)
        .where(ref.model.id == entity_id)
        .values({ref.column: new_value})
        .execution_options(synchronize_session="fetch")
    )
    result = session.execute(stmt)
    if result.rowcount == 0:
        logger.warning("Counter %s not adjusted: %s missing", ref, entity_id)
    return result.rowcount


def increment(session: Session, ref: CounterRef, entity_id: str) -> int:
    return adjust(session, ref, entity_id, 1)


def decrement(session: Session, ref: CounterRef, entity_id: str) -> int:
    return adjust(session, ref, entity_id, -1)


def read(session: Session, ref: CounterRef, entity_id: str) -> int:
    """Return the stored (clamped) value of a counter."""
    value = session.scalar(select(ref.attribute).where(ref.model.id == entity_id))
    return clamp(value)


def live_count(session: Session, ref: CounterRef, entity_id: str) -> int:
    """Count the source rows behind a counter without touching it."""
    try:
        source, fk = COUNTER_SOURCES[ref]
    except KeyError as err:
        raise ValueError(f"{ref} has no source rows to count") from err
    return session.scalar(
        select(func.count()).select_from(source).where(getattr(source, fk) == entity_id)
    ) or 0


def recount(session: Session, ref: CounterRef, entity_id: str) -> int:
    """Overwrite a counter with the live count of its source rows."""
    actual = live_count(session, ref, entity_id)
    session.execute(
        update(ref.model)
        .where(ref.model.id == entity_id)
        .values({ref.column: actual})
        .execution_options(synchronize_session="fetch")
    )
    return actual


def reconcile_all(session: Session, *, fix: bool = True) -> list[CounterDrift]:
    """Compare every recountable counter against its source rows.

    With ``fix`` the drifting counters are rewritten; the caller commits.
    """
    drifts: list[CounterDrift] = []
    for ref, (source, fk) in COUNTER_SOURCES.items():
        fk_column = getattr(source, fk)
        actual_by_id = dict(
            session.execute(select(fk_column, func.count()).group_by(fk_column)).all()
        )
        for entity_id, stored in session.execute(select(ref.model.id, ref.attribute)).all():
            actual = int(actual_by_id.get(entity_id, 0))
            if int(stored or 0) == actual:
                continue
            drift = CounterDrift(ref.table, ref.column, entity_id, int(stored or 0), actual)
            drifts.append(drift)
            logger.warning(
                "Counter drift on %s for %s: stored=%d actual=%d",
                ref,
                entity_id,
                drift.stored,
                drift.actual,
            )
            if fix:
                session.execute(
                    update(ref.model)
                    .where(ref.model.id == entity_id)
                    .values({ref.column: actual})
                    .execution_options(synchronize_session="fetch")
                )
    return drifts
