"""Database session configuration."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from devhub.core.settings import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def new_id() -> str:
    """Return a fresh string identifier for primary keys."""
    return str(uuid.uuid4())


# Ensure model modules are imported so that metadata is populated when create_all runs.
import devhub.models  # noqa: E402,F401

_connect_args = {}
if settings.effective_database_url.startswith("sqlite"):
    # Sessions open in the event loop and close in the dependency threadpool.
    _connect_args["check_same_thread"] = False

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit everything issued inside the block as one unit, or nothing."""
    try:
        yield session
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.error("Transaction rolled back after a storage error", exc_info=True)
        raise
    except Exception:
        session.rollback()
        raise


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
