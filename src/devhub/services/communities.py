"""Community lifecycle: creation, deletion, roles, bans and posts."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from devhub.core.settings import settings
from devhub.db.session import transaction
from devhub.models import (
    Community,
    CommunityBan,
    CommunityComment,
    CommunityMember,
    CommunityPost,
    CommunityPostLike,
    Profile,
)
from devhub.services import counters, roles
from devhub.services.errors import (
    ConflictError,
    InvalidOperationError,
    LimitExceededError,
    NotFoundError,
    PermissionDeniedError,
    require_actor,
)
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger(__name__)

COMMUNITY_EDITABLE_FIELDS = ("name", "description", "is_public", "topics", "avatar_url")


def _get_community(session: Session, community_id: str) -> Community:
    community = session.get(Community, community_id)
    if community is None:
        raise NotFoundError("Community not found")
    return community


def count_created(session: Session, user_id: str) -> int:
    return session.scalar(
        select(func.count()).select_from(Community).where(Community.creator_id == user_id)
    ) or 0


def remaining_creations(session: Session, user_id: str) -> int:
    return max(0, settings.community_creation_limit - count_created(session, user_id))


def create_community(
    session: Session,
    actor_id: str | None,
    name: str,
    description: str = "",
    *,
    is_public: bool = True,
    topics: list[str] | None = None,
    avatar_url: str | None = None,
) -> Community:
    """Create a community owned by ``actor_id``.

    The creator's ``owner`` membership row mirrors ``creator_id`` and is
    counted in ``members_count`` from the start.
    """
    actor_id = require_actor(actor_id)
    name = name.strip()
    if not name:
        raise InvalidOperationError("Community name is required")

    with transaction(session):
        if count_created(session, actor_id) >= settings.community_creation_limit:
            raise LimitExceededError(
                f"You can create at most {settings.community_creation_limit} communities"
            )
        taken = session.scalar(select(Community.id).where(func.lower(Community.name) == name.lower()))
        if taken is not None:
            raise ConflictError("A community with this name already exists")

        community = Community(
            name=name,
            description=description,
            creator_id=actor_id,
            is_public=is_public,
            topics=list(topics or []),
            avatar_url=avatar_url,
            members_count=1,
        )
        session.add(community)
        session.flush()
        session.add(
            CommunityMember(
                user_id=actor_id,
                community_id=community.id,
                role=roles.MemberRole.OWNER.value,
            )
        )

    logger.info("Community %s (%s) created by %s", community.id, name, actor_id)
    return community


def delete_community(session: Session, actor_id: str | None, community_id: str) -> None:
    """Delete a community with its posts, comments, likes, memberships and bans."""
    actor_id = require_actor(actor_id)
    cache = get_view_cache()

    with transaction(session):
        community = _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_delete_community(status):
            raise PermissionDeniedError("Only the community owner can delete it")

        post_ids = session.scalars(
            select(CommunityPost.id).where(CommunityPost.community_id == community_id)
        ).all()
        if post_ids:
            session.execute(
                delete(CommunityComment).where(CommunityComment.post_id.in_(post_ids))
            )
            session.execute(
                delete(CommunityPostLike).where(CommunityPostLike.post_id.in_(post_ids))
            )
            session.execute(delete(CommunityPost).where(CommunityPost.id.in_(post_ids)))
        session.execute(delete(CommunityMember).where(CommunityMember.community_id == community_id))
        session.execute(delete(CommunityBan).where(CommunityBan.community_id == community_id))
        session.delete(community)

    cache.invalidate(Community.__tablename__, community_id)
    cache.invalidate_many((CommunityPost.__tablename__, post_id) for post_id in post_ids)
    logger.info("Community %s deleted by %s", community_id, actor_id)


def update_community(
    session: Session,
    actor_id: str | None,
    community_id: str,
    changes: dict[str, Any],
) -> Community:
    """Edit a community's details. Admins and the owner may do this.

    A rename must stay unique, ignoring case.
    """
    actor_id = require_actor(actor_id)
    unknown = set(changes) - set(COMMUNITY_EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "name" in changes:
        changes = {**changes, "name": (changes["name"] or "").strip()}
        if not changes["name"]:
            raise InvalidOperationError("Community name is required")
    for field in ("description", "is_public", "topics"):
        if field in changes and changes[field] is None:
            raise InvalidOperationError(f"Community {field} cannot be removed")

    with transaction(session):
        community = _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_manage(status):
            raise PermissionDeniedError("Only community admins can edit it")
        name = changes.get("name")
        if name is not None and name != community.name:
            taken = session.scalar(
                select(Community.id).where(
                    func.lower(Community.name) == name.lower(),
                    Community.id != community_id,
                )
            )
            if taken is not None:
                raise ConflictError("A community with this name already exists")
        for field, value in changes.items():
            setattr(community, field, value)

    get_view_cache().invalidate(Community.__tablename__, community_id)
    logger.info("Community %s updated by %s (%s)", community_id, actor_id, ", ".join(sorted(changes)))
    return community


def set_member_role(
    session: Session,
    actor_id: str | None,
    community_id: str,
    user_id: str,
    role: str,
) -> roles.MemberRole:
    """Change a member's role. Only the owner may do this, and never to ``owner``."""
    actor_id = require_actor(actor_id)
    try:
        new_role = roles.MemberRole(role)
    except ValueError as err:
        raise InvalidOperationError(f"Unknown role: {role}") from err
    if new_role not in roles.ASSIGNABLE_ROLES:
        raise InvalidOperationError("Ownership cannot be assigned")

    with transaction(session):
        community = _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_set_roles(status):
            raise PermissionDeniedError("Only the community owner can change roles")
        if user_id == community.creator_id:
            raise ConflictError("The owner's role cannot be changed")
        result = session.execute(
            update(CommunityMember)
            .where(
                CommunityMember.community_id == community_id,
                CommunityMember.user_id == user_id,
            )
            .values(role=new_role.value)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFoundError("Member not found")

    logger.info("Role of %s in %s set to %s by %s", user_id, community_id, new_role, actor_id)
    return new_role


def ban_member(
    session: Session,
    actor_id: str | None,
    community_id: str,
    user_id: str,
    reason: str | None = None,
) -> CommunityBan:
    """Ban a user, removing their membership and its count in the same transaction."""
    actor_id = require_actor(actor_id)

    with transaction(session):
        community = _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_manage(status):
            raise PermissionDeniedError("Only community admins can ban members")
        if user_id == community.creator_id:
            raise ConflictError("The community owner cannot be banned")
        if user_id == actor_id:
            raise InvalidOperationError("You cannot ban yourself")
        if session.get(Profile, user_id) is None:
            raise NotFoundError("User not found")

        ban = session.get(CommunityBan, (community_id, user_id))
        if ban is None:
            ban = CommunityBan(
                community_id=community_id,
                user_id=user_id,
                banned_by=actor_id,
                reason=reason,
            )
            session.add(ban)
        removed = session.execute(
            delete(CommunityMember).where(
                CommunityMember.community_id == community_id,
                CommunityMember.user_id == user_id,
            )
        )
        if removed.rowcount:
            counters.decrement(session, counters.COMMUNITY_MEMBERS, community_id)

    get_view_cache().invalidate(Community.__tablename__, community_id)
    logger.info("User %s banned from %s by %s", user_id, community_id, actor_id)
    return ban


def unban_member(session: Session, actor_id: str | None, community_id: str, user_id: str) -> bool:
    """Lift a ban. Returns False if the user was not banned."""
    actor_id = require_actor(actor_id)

    with transaction(session):
        _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_manage(status):
            raise PermissionDeniedError("Only community admins can unban members")
        result = session.execute(
            delete(CommunityBan).where(
                CommunityBan.community_id == community_id,
                CommunityBan.user_id == user_id,
            )
        )

    lifted = result.rowcount > 0
    if lifted:
        logger.info("User %s unbanned from %s by %s", user_id, community_id, actor_id)
    return lifted


def list_bans(session: Session, actor_id: str | None, community_id: str) -> list[CommunityBan]:
    actor_id = require_actor(actor_id)
    _get_community(session, community_id)
    if not roles.can_manage(roles.get_membership(session, actor_id, community_id)):
        raise PermissionDeniedError("Only community admins can view bans")
    return list(
        session.scalars(
            select(CommunityBan)
            .where(CommunityBan.community_id == community_id)
            .order_by(CommunityBan.created_at.desc())
        ).all()
    )


def create_post(
    session: Session,
    actor_id: str | None,
    community_id: str,
    title: str,
    content: str,
) -> CommunityPost:
    """Publish a post; only members may post."""
    actor_id = require_actor(actor_id)

    with transaction(session):
        _get_community(session, community_id)
        status = roles.get_membership(session, actor_id, community_id)
        if not status.is_member:
            raise PermissionDeniedError("Join the community to post")
        post = CommunityPost(
            community_id=community_id,
            user_id=actor_id,
            title=title.strip(),
            content=content,
        )
        session.add(post)
        session.flush()
        counters.increment(session, counters.COMMUNITY_POSTS, community_id)

    get_view_cache().invalidate(Community.__tablename__, community_id)
    logger.info("Post %s created in %s by %s", post.id, community_id, actor_id)
    return post


def delete_post(session: Session, actor_id: str | None, post_id: str) -> None:
    """Delete a post with its likes and comments.

    Allowed for the author and for moderators, admins and the creator.
    """
    actor_id = require_actor(actor_id)

    with transaction(session):
        post = session.get(CommunityPost, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        community_id = post.community_id
        status = roles.get_membership(session, actor_id, community_id)
        if not roles.can_delete_content(actor_id, post.user_id, status):
            raise PermissionDeniedError("You cannot delete this post")
        session.execute(delete(CommunityComment).where(CommunityComment.post_id == post_id))
        session.execute(delete(CommunityPostLike).where(CommunityPostLike.post_id == post_id))
        session.delete(post)
        session.flush()
        counters.decrement(session, counters.COMMUNITY_POSTS, community_id)

    cache = get_view_cache()
    cache.invalidate(CommunityPost.__tablename__, post_id)
    cache.invalidate(Community.__tablename__, community_id)
    logger.info("Post %s deleted from %s by %s", post_id, community_id, actor_id)


def update_post(
    session: Session,
    actor_id: str | None,
    post_id: str,
    title: str | None = None,
    content: str | None = None,
) -> CommunityPost:
    """Edit a post's title or content. Same permissions as deleting it."""
    actor_id = require_actor(actor_id)
    if title is not None:
        title = title.strip()
        if not title:
            raise InvalidOperationError("Post title cannot be empty")
    if content is not None and not content.strip():
        raise InvalidOperationError("Post content cannot be empty")

    with transaction(session):
        post = session.get(CommunityPost, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        status = roles.get_membership(session, actor_id, post.community_id)
        if not roles.can_delete_content(actor_id, post.user_id, status):
            raise PermissionDeniedError("You cannot edit this post")
        if title is not None:
            post.title = title
        if content is not None:
            post.content = content

    get_view_cache().invalidate(CommunityPost.__tablename__, post_id)
    logger.info("Post %s edited by %s", post_id, actor_id)
    return post
