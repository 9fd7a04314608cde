"""Business logic services for the DevHub application."""

from .auth_context import AuthContext, AuthEvent, AuthEventType
from .change_feed import ChangeEvent, ChangeFeed
from .edges import EdgeResult, EdgeType
from .errors import DevHubError
from .view_cache import ViewCache

__all__ = [
    "AuthContext",
    "AuthEvent",
    "AuthEventType",
    "ChangeEvent",
    "ChangeFeed",
    "DevHubError",
    "EdgeResult",
    "EdgeType",
    "ViewCache",
]
