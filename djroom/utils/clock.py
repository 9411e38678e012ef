"""
UTC time helpers.

SQLite hands timezone-aware columns back as naive datetimes, so every value
read from the store goes through ``as_utc`` before it is compared.
"""

from datetime import datetime, timezone


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value):
    value = as_utc(value)
    return value.isoformat() if value else None
