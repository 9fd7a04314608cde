# src/devhub/main.py
"""Main entry point for the DevHub application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from devhub import __version__
from devhub.api.v1 import (
    auth_router,
    communities_router,
    posts_router,
    profiles_router,
    projects_router,
    snippets_router,
)
from devhub.core.settings import settings
from devhub.services.auth_context import AuthContext
from devhub.services.change_feed import get_change_feed
from devhub.services.errors import DevHubError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Developer social graph: profiles, projects, snippets and communities",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(projects_router, prefix="/api/v1")
app.include_router(snippets_router, prefix="/api/v1")
app.include_router(communities_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")


@app.exception_handler(DevHubError)
async def devhub_error_handler(request: Request, exc: DevHubError) -> JSONResponse:
    """Render domain errors with the status they carry."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures have already been rolled back; report them as unavailable."""
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage unavailable"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    app.state.auth = AuthContext()
    app.state.change_feed = get_change_feed()
    logger.info("%s %s started", settings.app_name, __version__)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    auth: AuthContext | None = getattr(app.state, "auth", None)
    if auth:
        auth.close()
    feed = getattr(app.state, "change_feed", None)
    if feed:
        feed.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "Developer social graph: profiles, projects, snippets and communities",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("devhub.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
