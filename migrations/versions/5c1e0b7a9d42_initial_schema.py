"""initial schema

Revision ID: 5c1e0b7a9d42
Revises:
Create Date: 2026-10-19 09:12:40.518221

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1e0b7a9d42"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ID = sa.String(length=36)
TS = sa.DateTime(timezone=True)


def _id_fk(column: str, target: str, **kwargs) -> sa.Column:
    return sa.Column(column, ID, sa.ForeignKey(target, ondelete="CASCADE"), **kwargs)


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def _edge_table(name: str, actor: str, target: str, target_table: str, *args) -> None:
    op.create_table(
        name,
        _id_fk(actor, "profiles.id", primary_key=True),
        _id_fk(target, f"{target_table}.id", primary_key=True),
        sa.Column("created_at", TS, nullable=False),
        *args,
    )


def upgrade() -> None:
    """Create the social graph schema."""
    op.create_table(
        "profiles",
        sa.Column("id", ID, primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=True, unique=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("github", sa.Text(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_username_change", TS, nullable=True),
        _counter("followers_count"),
        _counter("following_count"),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("updated_at", TS, nullable=False),
    )
    op.create_table(
        "auth_sessions",
        sa.Column("id", ID, primary_key=True),
        _id_fk("user_id", "profiles.id", nullable=False),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("revoked_at", TS, nullable=True),
    )
    op.create_table(
        "subscriptions",
        sa.Column("id", ID, primary_key=True),
        _id_fk("user_id", "profiles.id", nullable=False),
        sa.Column("plan", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("expires_at", TS, nullable=True),
        sa.Column("created_at", TS, nullable=False),
    )
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])

    for table, body_columns in (
        (
            "projects",
            [
                sa.Column("content", sa.Text(), nullable=False),
                sa.Column("github_url", sa.Text(), nullable=True),
                sa.Column("live_url", sa.Text(), nullable=True),
                sa.Column("technologies", sa.JSON(), nullable=False),
            ],
        ),
        (
            "snippets",
            [
                sa.Column("code", sa.Text(), nullable=False),
                sa.Column("language", sa.Text(), nullable=False),
                sa.Column("tags", sa.JSON(), nullable=False),
            ],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", ID, primary_key=True),
            _id_fk("user_id", "profiles.id", nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            *body_columns,
            _counter("likes_count"),
            _counter("comments_count"),
            _counter("views_count"),
            sa.Column("created_at", TS, nullable=False),
            sa.Column("updated_at", TS, nullable=False),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])

    op.create_table(
        "communities",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False),
        _id_fk("creator_id", "profiles.id", nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("topics", sa.JSON(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _counter("members_count"),
        _counter("posts_count"),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("updated_at", TS, nullable=False),
    )
    op.create_index("ix_communities_creator_id", "communities", ["creator_id"])

    op.create_table(
        "community_members",
        _id_fk("user_id", "profiles.id", primary_key=True),
        _id_fk("community_id", "communities.id", primary_key=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("created_at", TS, nullable=False),
        sa.CheckConstraint(
            "role IN ('member', 'moderator', 'admin', 'owner')",
            name="ck_community_members_role",
        ),
    )
    op.create_index(
        "ix_community_members_community_id", "community_members", ["community_id"]
    )
    op.create_table(
        "community_bans",
        _id_fk("community_id", "communities.id", primary_key=True),
        _id_fk("user_id", "profiles.id", primary_key=True),
        sa.Column("banned_by", ID, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", TS, nullable=False),
    )
    op.create_table(
        "community_posts",
        sa.Column("id", ID, primary_key=True),
        _id_fk("community_id", "communities.id", nullable=False),
        _id_fk("user_id", "profiles.id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _counter("likes_count"),
        _counter("comments_count"),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("updated_at", TS, nullable=False),
    )
    op.create_index("ix_community_posts_community_id", "community_posts", ["community_id"])

    _edge_table(
        "user_follows",
        "follower_id",
        "following_id",
        "profiles",
        sa.CheckConstraint("follower_id != following_id", name="ck_user_follows_not_self"),
    )
    op.create_index("ix_user_follows_following_id", "user_follows", ["following_id"])
    _edge_table("project_likes", "user_id", "project_id", "projects")
    op.create_index("ix_project_likes_project_id", "project_likes", ["project_id"])
    _edge_table("snippet_likes", "user_id", "snippet_id", "snippets")
    op.create_index("ix_snippet_likes_snippet_id", "snippet_likes", ["snippet_id"])
    _edge_table("saved_projects", "user_id", "project_id", "projects")
    _edge_table("saved_snippets", "user_id", "snippet_id", "snippets")
    _edge_table("community_post_likes", "user_id", "post_id", "community_posts")
    op.create_index("ix_community_post_likes_post_id", "community_post_likes", ["post_id"])

    for table, parent_column, parent_table in (
        ("comments", "project_id", "projects"),
        ("snippet_comments", "snippet_id", "snippets"),
        ("community_comments", "post_id", "community_posts"),
    ):
        op.create_table(
            table,
            sa.Column("id", ID, primary_key=True),
            _id_fk(parent_column, f"{parent_table}.id", nullable=False),
            _id_fk("user_id", "profiles.id", nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", TS, nullable=False),
        )
        op.create_index(f"ix_{table}_{parent_column}", table, [parent_column])


def downgrade() -> None:
    """Drop the social graph schema."""
    for table in (
        "community_comments",
        "snippet_comments",
        "comments",
        "community_post_likes",
        "saved_snippets",
        "saved_projects",
        "snippet_likes",
        "project_likes",
        "user_follows",
        "community_posts",
        "community_bans",
        "community_members",
        "communities",
        "snippets",
        "projects",
        "subscriptions",
        "auth_sessions",
        "profiles",
    ):
        op.drop_table(table)
