"""Relationship toggle: follows, likes, saves and community memberships.

Every edge type is a join table keyed on ``(actor, target)``. Adding an edge is
an ``INSERT ... ON CONFLICT DO NOTHING`` and removing one is a plain
``DELETE``; the affected row count alone decides whether anything changed, and
counters move in the same transaction only when it did.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from devhub.db.session import transaction
from devhub.models import (
    Community,
    CommunityBan,
    CommunityMember,
    CommunityPost,
    CommunityPostLike,
    Profile,
    Project,
    ProjectLike,
    SavedProject,
    SavedSnippet,
    Snippet,
    SnippetLike,
    UserFollow,
)
from devhub.services import counters
from devhub.services.counters import CounterRef
from devhub.services.errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    require_actor,
)
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger(__name__)


class EdgeType(StrEnum):
    FOLLOW = "follow"
    LIKE_PROJECT = "like-project"
    LIKE_SNIPPET = "like-snippet"
    SAVE_PROJECT = "save-project"
    SAVE_SNIPPET = "save-snippet"
    COMMUNITY_MEMBERSHIP = "community-membership"
    POST_LIKE = "post-like"


@dataclass(frozen=True)
class CounterBinding:
    """A counter moved by an edge, applied to the edge's target or its actor."""

    ref: CounterRef
    on_actor: bool = False

    def entity_id(self, actor_id: str, target_id: str) -> str:
        return actor_id if self.on_actor else target_id


@dataclass(frozen=True)
class EdgeSpec:
    model: Any
    actor_column: str
    target_column: str
    target_model: Any
    target_label: str
    counters: tuple[CounterBinding, ...] = ()
    defaults: dict[str, Any] = field(default_factory=dict)

    @property
    def primary_counter(self) -> CounterRef | None:
        """The target-side counter reported back to callers after a change."""
        for binding in self.counters:
            if not binding.on_actor:
                return binding.ref
        return None

    def match(self, actor_id: str, target_id: str) -> Any:
        return and_(
            getattr(self.model, self.actor_column) == actor_id,
            getattr(self.model, self.target_column) == target_id,
        )


EDGE_SPECS: dict[EdgeType, EdgeSpec] = {
    EdgeType.FOLLOW: EdgeSpec(
        model=UserFollow,
        actor_column="follower_id",
        target_column="following_id",
        target_model=Profile,
        target_label="Profile",
        counters=(
            CounterBinding(counters.FOLLOWERS),
            CounterBinding(counters.FOLLOWING, on_actor=True),
        ),
    ),
    EdgeType.LIKE_PROJECT: EdgeSpec(
        model=ProjectLike,
        actor_column="user_id",
        target_column="project_id",
        target_model=Project,
        target_label="Project",
        counters=(CounterBinding(counters.PROJECT_LIKES),),
    ),
    EdgeType.LIKE_SNIPPET: EdgeSpec(
        model=SnippetLike,
        actor_column="user_id",
        target_column="snippet_id",
        target_model=Snippet,
        target_label="Snippet",
        counters=(CounterBinding(counters.SNIPPET_LIKES),),
    ),
    EdgeType.SAVE_PROJECT: EdgeSpec(
        model=SavedProject,
        actor_column="user_id",
        target_column="project_id",
        target_model=Project,
        target_label="Project",
    ),
    EdgeType.SAVE_SNIPPET: EdgeSpec(
        model=SavedSnippet,
        actor_column="user_id",
        target_column="snippet_id",
        target_model=Snippet,
        target_label="Snippet",
    ),
    EdgeType.COMMUNITY_MEMBERSHIP: EdgeSpec(
        model=CommunityMember,
        actor_column="user_id",
        target_column="community_id",
        target_model=Community,
        target_label="Community",
        counters=(CounterBinding(counters.COMMUNITY_MEMBERS),),
        defaults={"role": "member"},
    ),
    EdgeType.POST_LIKE: EdgeSpec(
        model=CommunityPostLike,
        actor_column="user_id",
        target_column="post_id",
        target_model=CommunityPost,
        target_label="Post",
        counters=(CounterBinding(counters.POST_LIKES),),
    ),
}


@dataclass(frozen=True)
class EdgeResult:
    """Outcome of an edge mutation.

    ``changed`` is False when the edge was already in the requested state.
    """

    edge_type: EdgeType
    actor_id: str
    target_id: str
    active: bool
    changed: bool


def get_spec(edge_type: EdgeType | str) -> EdgeSpec:
    try:
        return EDGE_SPECS[EdgeType(edge_type)]
    except ValueError as err:
        raise InvalidOperationError(f"Unknown edge type: {edge_type}") from err


def insert_ignore(session: Session, model: Any, values: dict[str, Any]) -> bool:
    """Insert a row unless its key already exists; return True when a row was written."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing()
    else:
        raise ValueError(f"Unsupported database configuration: {dialect} has no conflict-free insert")
    result = session.connection().execute(stmt)
    return result.rowcount == 1


def _ensure_target(session: Session, spec: EdgeSpec, target_id: str) -> None:
    exists = session.scalar(select(spec.target_model.id).where(spec.target_model.id == target_id))
    if exists is None:
        raise NotFoundError(f"{spec.target_label} not found")


def _check_add(session: Session, edge_type: EdgeType, actor_id: str, target_id: str) -> None:
    if edge_type is EdgeType.FOLLOW and actor_id == target_id:
        raise InvalidOperationError("You cannot follow yourself")
    if edge_type is EdgeType.COMMUNITY_MEMBERSHIP:
        banned = session.scalar(
            select(CommunityBan.user_id).where(
                CommunityBan.community_id == target_id,
                CommunityBan.user_id == actor_id,
            )
        )
        if banned is not None:
            raise PermissionDeniedError("You are banned from this community")


def _check_remove(session: Session, edge_type: EdgeType, actor_id: str, target_id: str) -> None:
    if edge_type is EdgeType.COMMUNITY_MEMBERSHIP:
        creator_id = session.scalar(select(Community.creator_id).where(Community.id == target_id))
        if creator_id == actor_id:
            raise ConflictError("The community creator cannot leave; delete the community instead")


def _invalidate(spec: EdgeSpec, actor_id: str, target_id: str) -> None:
    cache = get_view_cache()
    keys = {(spec.target_model.__tablename__, target_id)}
    for binding in spec.counters:
        keys.add((binding.ref.table, binding.entity_id(actor_id, target_id)))
    cache.invalidate_many(keys)


def add_edge(
    session: Session,
    actor_id: str | None,
    edge_type: EdgeType | str,
    target_id: str,
    **extra: Any,
) -> EdgeResult:
    """Create the edge if absent and bump its counters in the same transaction."""
    actor_id = require_actor(actor_id)
    spec = get_spec(edge_type)
    edge_type = EdgeType(edge_type)

    with transaction(session):
        _ensure_target(session, spec, target_id)
        _check_add(session, edge_type, actor_id, target_id)
        values = {
            **spec.defaults,
            **extra,
            spec.actor_column: actor_id,
            spec.target_column: target_id,
        }
        created = insert_ignore(session, spec.model, values)
        if created:
            for binding in spec.counters:
                counters.increment(session, binding.ref, binding.entity_id(actor_id, target_id))

    if created:
        _invalidate(spec, actor_id, target_id)
        logger.info("Edge %s added: %s -> %s", edge_type, actor_id, target_id)
    return EdgeResult(edge_type, actor_id, target_id, active=True, changed=created)


def remove_edge(
    session: Session,
    actor_id: str | None,
    edge_type: EdgeType | str,
    target_id: str,
) -> EdgeResult:
    """Delete the edge if present and decrement its counters in the same transaction."""
    actor_id = require_actor(actor_id)
    spec = get_spec(edge_type)
    edge_type = EdgeType(edge_type)

    with transaction(session):
        _ensure_target(session, spec, target_id)
        _check_remove(session, edge_type, actor_id, target_id)
        result = session.connection().execute(
            delete(spec.model).where(spec.match(actor_id, target_id))
        )
        removed = result.rowcount > 0
        if removed:
            for binding in spec.counters:
                counters.decrement(session, binding.ref, binding.entity_id(actor_id, target_id))

    if removed:
        _invalidate(spec, actor_id, target_id)
        logger.info("Edge %s removed: %s -> %s", edge_type, actor_id, target_id)
    return EdgeResult(edge_type, actor_id, target_id, active=False, changed=removed)


def has_edge(
    session: Session,
    actor_id: str | None,
    edge_type: EdgeType | str,
    target_id: str,
) -> bool:
    if not actor_id:
        return False
    spec = get_spec(edge_type)
    row = session.execute(
        select(getattr(spec.model, spec.actor_column)).where(spec.match(actor_id, target_id))
    ).first()
    return row is not None


def toggle_edge(
    session: Session,
    actor_id: str | None,
    edge_type: EdgeType | str,
    target_id: str,
    currently_on: bool | None = None,
) -> EdgeResult:
    """Flip an edge.

    ``currently_on`` is the caller's belief about the edge. When given it picks
    the direction; a stale belief then lands as a no-op with ``changed=False``
    rather than flipping the edge the other way. Without it the store decides.
    """
    actor_id = require_actor(actor_id)
    if currently_on is None:
        currently_on = has_edge(session, actor_id, edge_type, target_id)
    if currently_on:
        return remove_edge(session, actor_id, edge_type, target_id)
    return add_edge(session, actor_id, edge_type, target_id)


def primary_count(session: Session, edge_type: EdgeType | str, target_id: str) -> int | None:
    """Return the target's counter for this edge type, if it has one."""
    ref = get_spec(edge_type).primary_counter
    if ref is None:
        return None
    return counters.read(session, ref, target_id)
