"""
Column types shared by the models.
"""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, TypeDecorator
from sqlmodel import Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp stored in UTC.

    PostgreSQL keeps it as ``timestamptz``. SQLite drops the offset, so
    values read back are tagged as UTC again.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("Timestamps must be timezone-aware, use utc_now()")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def timestamp_field(index: bool = False) -> Any:
    """Required timestamp defaulting to now."""
    return Field(default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False, index=index))


def optional_timestamp_field() -> Any:
    return Field(default=None, sa_column=Column(UTCDateTime, nullable=True))
