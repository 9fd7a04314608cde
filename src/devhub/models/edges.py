"""Join tables recording follows, likes and saves.

Every table keys on ``(actor, target)`` so the store itself rejects a second
edge of the same type for the same pair.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from devhub.db.session import Base
from devhub.db.time import utcnow


class UserFollow(Base):
    """``follower_id`` follows ``following_id``."""

    __tablename__ = "user_follows"
    __table_args__ = (
        CheckConstraint("follower_id != following_id", name="ck_user_follows_not_self"),
        Index("ix_user_follows_following_id", "following_id"),
    )

    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    following_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ProjectLike(Base):
    __tablename__ = "project_likes"
    __table_args__ = (Index("ix_project_likes_project_id", "project_id"),)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SnippetLike(Base):
    __tablename__ = "snippet_likes"
    __table_args__ = (Index("ix_snippet_likes_snippet_id", "snippet_id"),)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    snippet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("snippets.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SavedProject(Base):
    __tablename__ = "saved_projects"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SavedSnippet(Base):
    __tablename__ = "saved_snippets"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    snippet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("snippets.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class CommunityPostLike(Base):
    __tablename__ = "community_post_likes"
    __table_args__ = (Index("ix_community_post_likes_post_id", "post_id"),)

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("community_posts.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
