"""
Shared column helpers for the pool and ledger models.

Keeps cross-database compatibility (SQLite/PostgreSQL).
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime


def utc_now():
    """Return current UTC time with timezone info attached."""
    return datetime.now(UTC)


def as_utc(value):
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class CreatedAtMixin:
    """Creation timestamp; rows in this schema are never edited wholesale."""

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
