"""Tests for community lifecycle, roles and bans."""

import pytest

from devhub.core.settings import settings
from devhub.models import (
    Community,
    CommunityComment,
    CommunityMember,
    CommunityPost,
    CommunityPostLike,
)
from devhub.services import comments, communities, roles, views
from devhub.services.edges import EdgeType, add_edge, has_edge
from devhub.services.errors import (
    ConflictError,
    InvalidOperationError,
    LimitExceededError,
    NotFoundError,
    PermissionDeniedError,
)


def _join(db_session, user, community) -> None:
    add_edge(db_session, user.id, EdgeType.COMMUNITY_MEMBERSHIP, community.id)


def test_create_community_makes_creator_owner(db_session, test_user, test_community) -> None:
    assert test_community.members_count == 1
    assert test_community.creator_id == test_user.id

    status = roles.get_membership(db_session, test_user.id, test_community.id)
    assert status.role is roles.MemberRole.OWNER
    assert status.is_creator

    members = views.list_members(db_session, test_community.id)
    assert [(m.user_id, m.role) for m in members] == [(test_user.id, "owner")]


def test_community_names_are_unique(db_session, test_user, other_user, test_community) -> None:
    with pytest.raises(ConflictError):
        communities.create_community(db_session, other_user.id, "pythonistas")


def test_blank_name_is_rejected(db_session, test_user) -> None:
    with pytest.raises(InvalidOperationError):
        communities.create_community(db_session, test_user.id, "   ")


def test_creation_limit(db_session, test_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "community_creation_limit", 2)
    communities.create_community(db_session, test_user.id, "First")
    assert communities.remaining_creations(db_session, test_user.id) == 1
    communities.create_community(db_session, test_user.id, "Second")
    assert communities.remaining_creations(db_session, test_user.id) == 0

    with pytest.raises(LimitExceededError):
        communities.create_community(db_session, test_user.id, "Third")
    assert communities.count_created(db_session, test_user.id) == 2


def test_only_owner_sets_roles(db_session, test_user, other_user, third_user, test_community) -> None:
    _join(db_session, other_user, test_community)
    _join(db_session, third_user, test_community)

    communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "admin")
    assert roles.get_membership(db_session, other_user.id, test_community.id).role is roles.MemberRole.ADMIN

    with pytest.raises(PermissionDeniedError):
        communities.set_member_role(
            db_session, other_user.id, test_community.id, third_user.id, "moderator"
        )


def test_owner_role_cannot_be_assigned_or_changed(
    db_session, test_user, other_user, test_community
) -> None:
    _join(db_session, other_user, test_community)

    with pytest.raises(InvalidOperationError):
        communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "owner")
    with pytest.raises(InvalidOperationError):
        communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "king")
    with pytest.raises(ConflictError):
        communities.set_member_role(db_session, test_user.id, test_community.id, test_user.id, "member")


def test_set_role_of_non_member(db_session, test_user, other_user, test_community) -> None:
    with pytest.raises(NotFoundError):
        communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "admin")


def test_ban_removes_membership_and_blocks_rejoin(
    db_session, test_user, other_user, test_community
) -> None:
    _join(db_session, other_user, test_community)
    assert db_session.get(Community, test_community.id).members_count == 2

    ban = communities.ban_member(db_session, test_user.id, test_community.id, other_user.id, "spam")

    assert ban.reason == "spam"
    assert not has_edge(db_session, other_user.id, EdgeType.COMMUNITY_MEMBERSHIP, test_community.id)
    assert db_session.get(Community, test_community.id).members_count == 1
    with pytest.raises(PermissionDeniedError):
        _join(db_session, other_user, test_community)

    bans = communities.list_bans(db_session, test_user.id, test_community.id)
    assert [b.user_id for b in bans] == [other_user.id]

    assert communities.unban_member(db_session, test_user.id, test_community.id, other_user.id)
    assert not communities.unban_member(db_session, test_user.id, test_community.id, other_user.id)
    _join(db_session, other_user, test_community)
    assert db_session.get(Community, test_community.id).members_count == 2


def test_ban_guards(db_session, test_user, other_user, third_user, test_community) -> None:
    _join(db_session, other_user, test_community)
    _join(db_session, third_user, test_community)

    with pytest.raises(PermissionDeniedError):
        communities.ban_member(db_session, other_user.id, test_community.id, third_user.id)
    with pytest.raises(ConflictError):
        communities.ban_member(db_session, test_user.id, test_community.id, test_user.id)

    communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "admin")
    with pytest.raises(ConflictError):
        communities.ban_member(db_session, other_user.id, test_community.id, test_user.id)
    with pytest.raises(InvalidOperationError):
        communities.ban_member(db_session, other_user.id, test_community.id, other_user.id)
    with pytest.raises(NotFoundError):
        communities.ban_member(db_session, other_user.id, test_community.id, "nobody")


def test_ban_of_non_member_leaves_count(db_session, test_user, other_user, test_community) -> None:
    communities.ban_member(db_session, test_user.id, test_community.id, other_user.id)
    assert db_session.get(Community, test_community.id).members_count == 1


def test_posting_requires_membership(db_session, test_user, other_user, test_community) -> None:
    with pytest.raises(PermissionDeniedError):
        communities.create_post(db_session, other_user.id, test_community.id, "Hi", "there")

    _join(db_session, other_user, test_community)
    post = communities.create_post(db_session, other_user.id, test_community.id, " Hi ", "there")

    assert post.title == "Hi"
    assert db_session.get(Community, test_community.id).posts_count == 1


def test_author_and_moderators_delete_posts(
    db_session, test_user, other_user, third_user, test_community
) -> None:
    _join(db_session, other_user, test_community)
    _join(db_session, third_user, test_community)
    post = communities.create_post(db_session, other_user.id, test_community.id, "Mine", "body")

    with pytest.raises(PermissionDeniedError):
        communities.delete_post(db_session, third_user.id, post.id)

    communities.set_member_role(db_session, test_user.id, test_community.id, third_user.id, "moderator")
    communities.delete_post(db_session, third_user.id, post.id)

    assert db_session.get(CommunityPost, post.id) is None
    assert db_session.get(Community, test_community.id).posts_count == 0
    with pytest.raises(NotFoundError):
        communities.delete_post(db_session, third_user.id, post.id)


def test_admin_edits_community(db_session, test_user, other_user, test_community) -> None:
    _join(db_session, other_user, test_community)
    assert views.community_view(db_session, test_community.id).description == "All things Python"

    with pytest.raises(PermissionDeniedError):
        communities.update_community(
            db_session, other_user.id, test_community.id, {"description": "Hijacked"}
        )

    communities.set_member_role(db_session, test_user.id, test_community.id, other_user.id, "admin")
    communities.update_community(
        db_session,
        other_user.id,
        test_community.id,
        {"name": " Pythonistas Guild ", "description": "Updated", "topics": ["python", "typing"]},
    )

    view = views.community_view(db_session, test_community.id)
    assert view.name == "Pythonistas Guild"
    assert view.description == "Updated"
    assert view.topics == ["python", "typing"]
    assert view.members_count == 2


def test_community_rename_guards(db_session, test_user, other_user, test_community) -> None:
    communities.create_community(db_session, other_user.id, "Rustaceans")

    with pytest.raises(ConflictError):
        communities.update_community(db_session, test_user.id, test_community.id, {"name": "RUSTACEANS"})
    with pytest.raises(InvalidOperationError):
        communities.update_community(db_session, test_user.id, test_community.id, {"name": "  "})
    with pytest.raises(NotFoundError):
        communities.update_community(db_session, test_user.id, "missing", {"description": "x"})

    communities.update_community(db_session, test_user.id, test_community.id, {"name": "PYTHONISTAS"})
    assert db_session.get(Community, test_community.id).name == "PYTHONISTAS"


def test_author_and_moderators_edit_posts(
    db_session, test_user, other_user, third_user, test_community
) -> None:
    _join(db_session, other_user, test_community)
    _join(db_session, third_user, test_community)
    post = communities.create_post(db_session, other_user.id, test_community.id, "Draft", "body")
    assert views.post_view(db_session, post.id).title == "Draft"

    communities.update_post(db_session, other_user.id, post.id, title=" Final ")
    assert views.post_view(db_session, post.id).title == "Final"

    with pytest.raises(PermissionDeniedError):
        communities.update_post(db_session, third_user.id, post.id, content="edited")
    communities.set_member_role(db_session, test_user.id, test_community.id, third_user.id, "moderator")
    communities.update_post(db_session, third_user.id, post.id, content="edited")

    view = views.post_view(db_session, post.id)
    assert (view.title, view.content) == ("Final", "edited")


def test_post_edit_rejects_blank_fields(db_session, test_user, test_post) -> None:
    with pytest.raises(InvalidOperationError):
        communities.update_post(db_session, test_user.id, test_post.id, title="   ")
    with pytest.raises(InvalidOperationError):
        communities.update_post(db_session, test_user.id, test_post.id, content="\n")
    with pytest.raises(NotFoundError):
        communities.update_post(db_session, test_user.id, "missing", title="x")
    assert db_session.get(CommunityPost, test_post.id).title == "Welcome"


def test_delete_community_cascades(
    db_session, test_user, other_user, test_community, test_post
) -> None:
    _join(db_session, other_user, test_community)
    add_edge(db_session, other_user.id, EdgeType.POST_LIKE, test_post.id)
    comments.add_comment(db_session, "post", test_post.id, other_user.id, "hello")

    with pytest.raises(PermissionDeniedError):
        communities.delete_community(db_session, other_user.id, test_community.id)

    communities.delete_community(db_session, test_user.id, test_community.id)

    assert db_session.get(Community, test_community.id) is None
    assert db_session.query(CommunityPost).count() == 0
    assert db_session.query(CommunityComment).count() == 0
    assert db_session.query(CommunityPostLike).count() == 0
    assert db_session.query(CommunityMember).count() == 0
    with pytest.raises(NotFoundError):
        views.community_view(db_session, test_community.id)
