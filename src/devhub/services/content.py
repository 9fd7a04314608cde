"""Projects and snippets: publishing, deletion and view counting."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from devhub.core.settings import settings
from devhub.db.session import transaction
from devhub.models import (
    Profile,
    Project,
    ProjectComment,
    ProjectLike,
    SavedProject,
    SavedSnippet,
    Snippet,
    SnippetComment,
    SnippetLike,
)
from devhub.services import counters
from devhub.services.errors import (
    InvalidOperationError,
    LimitExceededError,
    NotFoundError,
    PermissionDeniedError,
    require_actor,
)
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger(__name__)

# model -> rows that hang off it and go with it on delete
_DEPENDENTS: dict[Any, tuple[tuple[Any, str], ...]] = {
    Project: (
        (ProjectComment, "project_id"),
        (ProjectLike, "project_id"),
        (SavedProject, "project_id"),
    ),
    Snippet: (
        (SnippetComment, "snippet_id"),
        (SnippetLike, "snippet_id"),
        (SavedSnippet, "snippet_id"),
    ),
}

_VIEW_COUNTERS = {
    Project: counters.PROJECT_VIEWS,
    Snippet: counters.SNIPPET_VIEWS,
}

# model -> fields its owner may edit
_EDITABLE: dict[Any, tuple[str, ...]] = {
    Project: ("title", "description", "content", "github_url", "live_url", "technologies"),
    Snippet: ("title", "description", "code", "language", "tags"),
}
_NOT_BLANK = frozenset({"title", "code", "language"})
_NULLABLE = frozenset({"github_url", "live_url"})


def count_projects(session: Session, user_id: str) -> int:
    return session.scalar(
        select(func.count()).select_from(Project).where(Project.user_id == user_id)
    ) or 0


def create_project(session: Session, actor_id: str | None, **fields: Any) -> Project:
    actor_id = require_actor(actor_id)
    with transaction(session):
        if count_projects(session, actor_id) >= settings.project_creation_limit:
            raise LimitExceededError(
                f"You can publish at most {settings.project_creation_limit} projects"
            )
        project = Project(user_id=actor_id, **fields)
        session.add(project)
        session.flush()

    get_view_cache().invalidate(Profile.__tablename__, actor_id)
    logger.info("Project %s created by %s", project.id, actor_id)
    return project


def create_snippet(session: Session, actor_id: str | None, **fields: Any) -> Snippet:
    actor_id = require_actor(actor_id)
    with transaction(session):
        snippet = Snippet(user_id=actor_id, **fields)
        session.add(snippet)
        session.flush()

    get_view_cache().invalidate(Profile.__tablename__, actor_id)
    logger.info("Snippet %s created by %s", snippet.id, actor_id)
    return snippet


def _delete_owned(session: Session, model: Any, entity_id: str, actor_id: str | None, label: str) -> None:
    actor_id = require_actor(actor_id)
    with transaction(session):
        entity = session.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label} not found")
        if entity.user_id != actor_id:
            raise PermissionDeniedError(f"You can only delete your own {label.lower()}s")
        for dependent, column in _DEPENDENTS[model]:
            session.execute(delete(dependent).where(getattr(dependent, column) == entity_id))
        session.delete(entity)

    cache = get_view_cache()
    cache.invalidate(model.__tablename__, entity_id)
    cache.invalidate(Profile.__tablename__, actor_id)
    logger.info("%s %s deleted by %s", label, entity_id, actor_id)


def delete_project(session: Session, actor_id: str | None, project_id: str) -> None:
    _delete_owned(session, Project, project_id, actor_id, "Project")


def delete_snippet(session: Session, actor_id: str | None, snippet_id: str) -> None:
    _delete_owned(session, Snippet, snippet_id, actor_id, "Snippet")


def _update_owned(
    session: Session,
    model: Any,
    entity_id: str,
    actor_id: str | None,
    changes: dict[str, Any],
    label: str,
) -> Any:
    actor_id = require_actor(actor_id)
    unknown = set(changes) - set(_EDITABLE[model])
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    for field, value in changes.items():
        if value is None and field not in _NULLABLE:
            raise InvalidOperationError(f"{label} {field} cannot be removed")
        if field in _NOT_BLANK and not value.strip():
            raise InvalidOperationError(f"{label} {field} cannot be empty")

    with transaction(session):
        entity = session.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label} not found")
        if entity.user_id != actor_id:
            raise PermissionDeniedError(f"You can only edit your own {label.lower()}s")
        for field, value in changes.items():
            if field in ("title", "language"):
                value = value.strip()
            setattr(entity, field, value)

    get_view_cache().invalidate(model.__tablename__, entity_id)
    logger.info("%s %s updated (%s)", label, entity_id, ", ".join(sorted(changes)) or "no fields")
    return entity


def update_project(
    session: Session, actor_id: str | None, project_id: str, changes: dict[str, Any]
) -> Project:
    """Apply ``changes`` to a project. Only its owner may edit it."""
    return _update_owned(session, Project, project_id, actor_id, changes, "Project")


def update_snippet(
    session: Session, actor_id: str | None, snippet_id: str, changes: dict[str, Any]
) -> Snippet:
    return _update_owned(session, Snippet, snippet_id, actor_id, changes, "Snippet")


def record_view(session: Session, model: Any, entity_id: str) -> int:
    """Count one view of a project or snippet and return the new total.

    Anonymous viewers count too, so no actor is required.
    """
    ref = _VIEW_COUNTERS[model]
    with transaction(session):
        if counters.increment(session, ref, entity_id) == 0:
            raise NotFoundError(f"{model.__name__} not found")
        total = counters.read(session, ref, entity_id)

    get_view_cache().invalidate(ref.table, entity_id)
    return total
