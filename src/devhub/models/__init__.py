# src/devhub/models/__init__.py
"""SQLAlchemy models for the DevHub application."""

from .auth_session import AuthSession
from .comment import CommunityComment, ProjectComment, SnippetComment
from .community import Community, CommunityBan, CommunityMember, CommunityPost
from .content import Project, Snippet
from .edges import (
    CommunityPostLike,
    ProjectLike,
    SavedProject,
    SavedSnippet,
    SnippetLike,
    UserFollow,
)
from .profile import Profile
from .subscription import Subscription

__all__ = [
    "AuthSession",
    "CommunityComment", "ProjectComment", "SnippetComment",
    "Community", "CommunityBan", "CommunityMember", "CommunityPost",
    "Project", "Snippet",
    "CommunityPostLike", "ProjectLike", "SavedProject", "SavedSnippet", "SnippetLike",
    "UserFollow",
    "Profile",
    "Subscription",
]
