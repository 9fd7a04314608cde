# src/devhub/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, which SQLite returns for aware columns."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)
