"""Shared API dependencies for authentication and database access."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from devhub.db.session import get_db
from devhub.schemas.edge import ToggleResponse
from devhub.services.auth_context import AuthContext, Identity
from devhub.services.edges import EdgeResult, primary_count

# Bearer tokens are optional at the scheme level; endpoints decide whether an actor is required.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_auth_context(request: Request) -> AuthContext:
    """Return the application's auth context, created at startup."""
    auth: AuthContext | None = getattr(request.app.state, "auth", None)
    if auth is None or auth.closed:
        auth = AuthContext()
        request.app.state.auth = auth
    return auth


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]


def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
    auth: AuthContextDep,
) -> Identity | None:
    """Resolve the bearer token if one was sent; anonymous otherwise."""
    if credentials is None:
        return None
    return auth.resolve(db, credentials.credentials)


OptionalIdentityDep = Annotated[Identity | None, Depends(get_optional_identity)]


def get_current_identity(identity: OptionalIdentityDep) -> Identity:
    """Require a valid bearer token.

    Raises:
        HTTPException: 401 when no valid token was supplied
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]


def viewer_id(identity: Identity | None) -> str | None:
    return identity.user_id if identity else None


def edge_response(db: Session, result: EdgeResult) -> ToggleResponse:
    """Render an edge mutation with the target's counter as committed."""
    return ToggleResponse(
        edge_type=result.edge_type.value,
        target_id=result.target_id,
        active=result.active,
        changed=result.changed,
        count=primary_count(db, result.edge_type, result.target_id),
    )
