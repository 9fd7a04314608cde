"""Assemble display-ready views of entities for a given viewer.

Entity fields and counters come from the shared :class:`ViewCache` snapshot;
viewer flags (liked, saved, following, membership) are computed per request
and never cached.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from devhub.models import (
    Community,
    CommunityMember,
    CommunityPost,
    Profile,
    Project,
    SavedProject,
    SavedSnippet,
    Snippet,
    UserFollow,
)
from devhub.schemas.common import AuthorSummary
from devhub.schemas.community import CommunityView, MembershipView, MemberView, PostView
from devhub.schemas.content import ProjectView, SnippetView
from devhub.schemas.profile import FollowList, ProfileView
from devhub.services import roles
from devhub.services.counters import clamp
from devhub.services.edges import EdgeType, has_edge
from devhub.services.errors import NotFoundError
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger(__name__)

PROFILES = Profile.__tablename__
PROJECTS = Project.__tablename__
SNIPPETS = Snippet.__tablename__
COMMUNITIES = Community.__tablename__
POSTS = CommunityPost.__tablename__

_ROLE_RANK = {
    roles.MemberRole.OWNER: 0,
    roles.MemberRole.ADMIN: 1,
    roles.MemberRole.MODERATOR: 2,
    roles.MemberRole.MEMBER: 3,
}


def _count(session: Session, model: Any, column: Any, value: str) -> int:
    return session.scalar(select(func.count()).select_from(model).where(column == value)) or 0


def _load_profile(session: Session, profile_id: str) -> dict[str, Any] | None:
    profile = session.get(Profile, profile_id)
    if profile is None:
        return None
    return {
        "id": profile.id,
        "username": profile.username,
        "full_name": profile.full_name,
        "display_name": profile.display_name,
        "bio": profile.bio,
        "avatar_url": profile.avatar_url,
        "website": profile.website,
        "github": profile.github,
        "followers_count": clamp(profile.followers_count),
        "following_count": clamp(profile.following_count),
        "projects_count": _count(session, Project, Project.user_id, profile.id),
        "snippets_count": _count(session, Snippet, Snippet.user_id, profile.id),
        "created_at": profile.created_at,
    }


def _load_project(session: Session, project_id: str) -> dict[str, Any] | None:
    project = session.get(Project, project_id)
    if project is None:
        return None
    return {
        "id": project.id,
        "user_id": project.user_id,
        "title": project.title,
        "description": project.description,
        "content": project.content,
        "github_url": project.github_url,
        "live_url": project.live_url,
        "technologies": list(project.technologies or []),
        "likes_count": clamp(project.likes_count),
        "comments_count": clamp(project.comments_count),
        "views_count": clamp(project.views_count),
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def _load_snippet(session: Session, snippet_id: str) -> dict[str, Any] | None:
    snippet = session.get(Snippet, snippet_id)
    if snippet is None:
        return None
    return {
        "id": snippet.id,
        "user_id": snippet.user_id,
        "title": snippet.title,
        "description": snippet.description,
        "code": snippet.code,
        "language": snippet.language,
        "tags": list(snippet.tags or []),
        "likes_count": clamp(snippet.likes_count),
        "comments_count": clamp(snippet.comments_count),
        "views_count": clamp(snippet.views_count),
        "created_at": snippet.created_at,
        "updated_at": snippet.updated_at,
    }


def _load_community(session: Session, community_id: str) -> dict[str, Any] | None:
    community = session.get(Community, community_id)
    if community is None:
        return None
    return {
        "id": community.id,
        "name": community.name,
        "description": community.description,
        "creator_id": community.creator_id,
        "is_public": community.is_public,
        "topics": list(community.topics or []),
        "avatar_url": community.avatar_url,
        "members_count": clamp(community.members_count),
        "posts_count": clamp(community.posts_count),
        "created_at": community.created_at,
    }


def _load_post(session: Session, post_id: str) -> dict[str, Any] | None:
    post = session.get(CommunityPost, post_id)
    if post is None:
        return None
    return {
        "id": post.id,
        "community_id": post.community_id,
        "user_id": post.user_id,
        "title": post.title,
        "content": post.content,
        "likes_count": clamp(post.likes_count),
        "comments_count": clamp(post.comments_count),
        "created_at": post.created_at,
        "updated_at": post.updated_at,
    }


def _snapshot(session: Session, kind: str, entity_id: str, loader: Any, label: str) -> dict[str, Any]:
    data = get_view_cache().get_or_load(kind, entity_id, lambda: loader(session, entity_id))
    if data is None:
        raise NotFoundError(f"{label} not found")
    return data


def author_summary(session: Session, profile_id: str | None) -> AuthorSummary | None:
    """Return the display identity of a profile, or None if it no longer exists."""
    if not profile_id:
        return None
    data = get_view_cache().get_or_load(PROFILES, profile_id, lambda: _load_profile(session, profile_id))
    if data is None:
        return None
    return AuthorSummary(
        id=data["id"],
        username=data["username"],
        full_name=data["full_name"],
        avatar_url=data["avatar_url"],
        display_name=data["display_name"],
    )


def membership_view(status: roles.MembershipStatus) -> MembershipView:
    return MembershipView(
        is_member=status.is_member,
        role=status.role.value if status.role else None,
        is_creator=status.is_creator,
        affordance=roles.affordance(status),
    )


def profile_view(session: Session, profile_id: str, viewer_id: str | None = None) -> ProfileView:
    data = _snapshot(session, PROFILES, profile_id, _load_profile, "Profile")
    is_self = bool(viewer_id) and viewer_id == profile_id
    return ProfileView(
        **data,
        is_self=is_self,
        is_following=(not is_self) and has_edge(session, viewer_id, EdgeType.FOLLOW, profile_id),
    )


def project_view(session: Session, project_id: str, viewer_id: str | None = None) -> ProjectView:
    data = _snapshot(session, PROJECTS, project_id, _load_project, "Project")
    is_owner = bool(viewer_id) and viewer_id == data["user_id"]
    return ProjectView(
        **data,
        author=author_summary(session, data["user_id"]),
        is_liked=has_edge(session, viewer_id, EdgeType.LIKE_PROJECT, project_id),
        is_saved=has_edge(session, viewer_id, EdgeType.SAVE_PROJECT, project_id),
        is_owner=is_owner,
        can_delete=is_owner,
    )


def snippet_view(session: Session, snippet_id: str, viewer_id: str | None = None) -> SnippetView:
    data = _snapshot(session, SNIPPETS, snippet_id, _load_snippet, "Snippet")
    is_owner = bool(viewer_id) and viewer_id == data["user_id"]
    return SnippetView(
        **data,
        author=author_summary(session, data["user_id"]),
        is_liked=has_edge(session, viewer_id, EdgeType.LIKE_SNIPPET, snippet_id),
        is_saved=has_edge(session, viewer_id, EdgeType.SAVE_SNIPPET, snippet_id),
        is_owner=is_owner,
        can_delete=is_owner,
    )


def community_view(
    session: Session,
    community_id: str,
    viewer_id: str | None = None,
) -> CommunityView:
    data = _snapshot(session, COMMUNITIES, community_id, _load_community, "Community")
    status = roles.get_membership(session, viewer_id, community_id)
    return CommunityView(
        **data,
        creator=author_summary(session, data["creator_id"]),
        membership=membership_view(status),
        can_manage=roles.can_manage(status),
        can_delete=roles.can_delete_community(status),
    )


def post_view(session: Session, post_id: str, viewer_id: str | None = None) -> PostView:
    data = _snapshot(session, POSTS, post_id, _load_post, "Post")
    can_delete = False
    if viewer_id:
        status = roles.get_membership(session, viewer_id, data["community_id"])
        can_delete = roles.can_delete_content(viewer_id, data["user_id"], status)
    return PostView(
        **data,
        author=author_summary(session, data["user_id"]),
        is_liked=has_edge(session, viewer_id, EdgeType.POST_LIKE, post_id),
        can_delete=can_delete,
    )


def _follow_list(session: Session, profile_id: str, *, followers: bool) -> FollowList:
    if session.get(Profile, profile_id) is None:
        raise NotFoundError("Profile not found")
    if followers:
        match, other = UserFollow.following_id, UserFollow.follower_id
    else:
        match, other = UserFollow.follower_id, UserFollow.following_id
    ids = session.scalars(
        select(other).where(match == profile_id).order_by(UserFollow.created_at.desc())
    ).all()
    items = [summary for summary in (author_summary(session, pid) for pid in ids) if summary]
    return FollowList(count=len(items), items=items)


def list_followers(session: Session, profile_id: str) -> FollowList:
    return _follow_list(session, profile_id, followers=True)


def list_following(session: Session, profile_id: str) -> FollowList:
    return _follow_list(session, profile_id, followers=False)


def list_members(session: Session, community_id: str) -> list[MemberView]:
    """Return members ordered by role, creator first."""
    creator_id = session.scalar(select(Community.creator_id).where(Community.id == community_id))
    if creator_id is None:
        raise NotFoundError("Community not found")
    rows = session.execute(
        select(CommunityMember.user_id, CommunityMember.role, CommunityMember.created_at).where(
            CommunityMember.community_id == community_id
        )
    ).all()
    members = []
    for user_id, role, joined_at in rows:
        resolved = roles.MemberRole(role)
        if user_id == creator_id:
            resolved = roles.MemberRole.OWNER
        elif resolved is roles.MemberRole.OWNER:
            resolved = roles.MemberRole.ADMIN
        members.append(
            MemberView(
                user_id=user_id,
                role=resolved.value,
                joined_at=joined_at,
                profile=author_summary(session, user_id),
            )
        )
    members.sort(key=lambda m: (_ROLE_RANK[roles.MemberRole(m.role)], m.joined_at))
    return members


def list_public_communities(
    session: Session,
    viewer_id: str | None = None,
    *,
    limit: int = 50,
) -> list[CommunityView]:
    ids = session.scalars(
        select(Community.id)
        .where(Community.is_public.is_(True))
        .order_by(Community.members_count.desc(), Community.created_at.desc())
        .limit(limit)
    ).all()
    return [community_view(session, community_id, viewer_id) for community_id in ids]


def list_user_projects(
    session: Session,
    user_id: str,
    viewer_id: str | None = None,
) -> list[ProjectView]:
    ids = session.scalars(
        select(Project.id).where(Project.user_id == user_id).order_by(Project.created_at.desc())
    ).all()
    return [project_view(session, project_id, viewer_id) for project_id in ids]


def list_user_snippets(
    session: Session,
    user_id: str,
    viewer_id: str | None = None,
) -> list[SnippetView]:
    ids = session.scalars(
        select(Snippet.id).where(Snippet.user_id == user_id).order_by(Snippet.created_at.desc())
    ).all()
    return [snippet_view(session, snippet_id, viewer_id) for snippet_id in ids]


def list_saved_projects(session: Session, user_id: str) -> list[ProjectView]:
    """Projects ``user_id`` has saved, most recently saved first."""
    ids = session.scalars(
        select(SavedProject.project_id)
        .where(SavedProject.user_id == user_id)
        .order_by(SavedProject.created_at.desc())
    ).all()
    return [project_view(session, project_id, user_id) for project_id in ids]


def list_saved_snippets(session: Session, user_id: str) -> list[SnippetView]:
    ids = session.scalars(
        select(SavedSnippet.snippet_id)
        .where(SavedSnippet.user_id == user_id)
        .order_by(SavedSnippet.created_at.desc())
    ).all()
    return [snippet_view(session, snippet_id, user_id) for snippet_id in ids]


def list_community_posts(
    session: Session,
    community_id: str,
    viewer_id: str | None = None,
    *,
    limit: int = 50,
) -> list[PostView]:
    if session.scalar(select(Community.id).where(Community.id == community_id)) is None:
        raise NotFoundError("Community not found")
    ids = session.scalars(
        select(CommunityPost.id)
        .where(CommunityPost.community_id == community_id)
        .order_by(CommunityPost.created_at.desc())
        .limit(limit)
    ).all()
    return [post_view(session, post_id, viewer_id) for post_id in ids]
