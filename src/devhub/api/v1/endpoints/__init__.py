"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .communities import router as communities_router
from .posts import router as posts_router
from .profiles import router as profiles_router
from .projects import router as projects_router
from .snippets import router as snippets_router

__all__ = [
    "auth_router",
    "profiles_router",
    "projects_router",
    "snippets_router",
    "communities_router",
    "posts_router",
]
