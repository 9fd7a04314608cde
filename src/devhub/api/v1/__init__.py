"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    communities_router,
    posts_router,
    profiles_router,
    projects_router,
    snippets_router,
)

__all__ = [
    "auth_router",
    "profiles_router",
    "projects_router",
    "snippets_router",
    "communities_router",
    "posts_router",
]
