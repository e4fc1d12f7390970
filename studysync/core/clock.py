"""
Time helpers. Everything is stored and compared in UTC; SQLite hands
timestamps back without a timezone, so readers normalize with `as_utc`.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
