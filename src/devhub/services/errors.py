"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``devhub.main`` registers a
single handler that renders them as ``{"detail": message}``.
"""

from __future__ import annotations

from fastapi import status


class DevHubError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequiredError(DevHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class PermissionDeniedError(DevHubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action"


class NotFoundError(DevHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(DevHubError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting state"


class InvalidOperationError(DevHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"


class LimitExceededError(DevHubError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Limit reached"


def require_actor(actor_id: str | None) -> str:
    """Return ``actor_id`` or raise before any store access is attempted."""
    if not actor_id:
        raise AuthenticationRequiredError()
    return actor_id
