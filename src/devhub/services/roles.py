"""Community role resolution and the permission rules built on it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from devhub.models import Community, CommunityMember
from devhub.services.errors import NotFoundError


class MemberRole(StrEnum):
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"
    OWNER = "owner"


# Roles that may be granted through the API. Ownership follows communities.creator_id.
ASSIGNABLE_ROLES = frozenset({MemberRole.MEMBER, MemberRole.MODERATOR, MemberRole.ADMIN})

Affordance = Literal["join", "leave", "manage"]


@dataclass(frozen=True)
class MembershipStatus:
    is_member: bool
    role: MemberRole | None = None
    is_creator: bool = False


NOT_A_MEMBER = MembershipStatus(is_member=False)


def get_membership(session: Session, actor_id: str | None, community_id: str) -> MembershipStatus:
    """Resolve the actor's standing in a community without writing anything.

    The creator resolves to ``owner`` whatever the membership row says.
    """
    creator_id = session.scalar(select(Community.creator_id).where(Community.id == community_id))
    if creator_id is None:
        raise NotFoundError("Community not found")
    if not actor_id:
        return NOT_A_MEMBER
    if actor_id == creator_id:
        return MembershipStatus(is_member=True, role=MemberRole.OWNER, is_creator=True)

    role = session.scalar(
        select(CommunityMember.role).where(
            CommunityMember.community_id == community_id,
            CommunityMember.user_id == actor_id,
        )
    )
    if role is None:
        return NOT_A_MEMBER
    resolved = MemberRole(role)
    if resolved is MemberRole.OWNER:
        # A stale owner row for someone other than the creator grants admin at most.
        resolved = MemberRole.ADMIN
    return MembershipStatus(is_member=True, role=resolved)


def can_moderate(status: MembershipStatus) -> bool:
    return status.role in (MemberRole.MODERATOR, MemberRole.ADMIN, MemberRole.OWNER)


def can_manage(status: MembershipStatus) -> bool:
    return status.role in (MemberRole.ADMIN, MemberRole.OWNER)


def can_delete_community(status: MembershipStatus) -> bool:
    return status.role is MemberRole.OWNER


def can_set_roles(status: MembershipStatus) -> bool:
    return status.role is MemberRole.OWNER


def can_delete_content(
    actor_id: str | None,
    author_id: str,
    status: MembershipStatus,
) -> bool:
    if not actor_id:
        return False
    return actor_id == author_id or can_moderate(status)


def affordance(status: MembershipStatus) -> Affordance:
    """Pick the community action offered to the viewer."""
    if can_manage(status):
        return "manage"
    if status.is_member:
        return "leave"
    return "join"
