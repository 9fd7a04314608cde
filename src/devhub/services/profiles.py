"""Profile reads and self-service updates."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from devhub.core.settings import settings
from devhub.db.session import transaction
from devhub.db.time import as_utc, utcnow
from devhub.models import Profile
from devhub.schemas.profile import UsernameChangeStatus
from devhub.services.errors import ConflictError, NotFoundError, require_actor
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("username", "full_name", "bio", "avatar_url", "website", "github")


class UsernameChangeTooSoonError(ConflictError):
    default_message = "Username was changed too recently"


def get_profile(session: Session, profile_id: str) -> Profile:
    profile = session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def get_profile_id_by_username(session: Session, username: str) -> str:
    profile_id = session.scalar(
        select(Profile.id).where(func.lower(Profile.username) == username.lower())
    )
    if profile_id is None:
        raise NotFoundError("Profile not found")
    return profile_id


def username_change_status(profile: Profile, now: datetime | None = None) -> UsernameChangeStatus:
    """Whether the username may change now, and if not, in how many whole days."""
    if profile.last_username_change is None:
        return UsernameChangeStatus(can_change=True, days_remaining=0)
    now = now or utcnow()
    interval = timedelta(days=settings.username_change_interval_days)
    elapsed = now - as_utc(profile.last_username_change)
    if elapsed >= interval:
        return UsernameChangeStatus(can_change=True, days_remaining=0)
    remaining = (interval - elapsed).total_seconds() / 86400
    return UsernameChangeStatus(can_change=False, days_remaining=max(1, math.ceil(remaining)))


def update_profile(session: Session, actor_id: str | None, changes: dict[str, Any]) -> Profile:
    """Apply ``changes`` to the actor's own profile.

    A new username is accepted at most once per configured interval.
    """
    actor_id = require_actor(actor_id)
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

    with transaction(session):
        profile = get_profile(session, actor_id)
        username = changes.get("username")
        if username is not None and username != profile.username:
            status = username_change_status(profile)
            if not status.can_change:
                raise UsernameChangeTooSoonError(
                    f"You can change your username again in {status.days_remaining} days"
                )
            taken = session.scalar(
                select(Profile.id).where(
                    func.lower(Profile.username) == username.lower(),
                    Profile.id != actor_id,
                )
            )
            if taken is not None:
                raise ConflictError("Username is already taken")
            profile.username = username
            profile.last_username_change = utcnow()

        for field in EDITABLE_FIELDS:
            if field != "username" and field in changes:
                setattr(profile, field, changes[field])

    get_view_cache().invalidate(Profile.__tablename__, actor_id)
    logger.info("Profile %s updated (%s)", actor_id, ", ".join(sorted(changes)) or "no fields")
    return profile
