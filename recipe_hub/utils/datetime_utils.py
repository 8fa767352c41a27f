"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from recipe_hub.utils.datetime_utils import utc_now, to_utc

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # Before writing a caller-supplied timestamp
    row.date_published = to_storage_utc(published)

    # Before handing a stored timestamp to a caller
    published = to_utc(recipe.date_published)
"""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to timezone-aware UTC.

    SQLite hands back naive datetimes; those are stored in UTC, so the
    timezone is attached rather than converted. Aware values are converted.

    Args:
        value: Datetime to normalize, or None

    Returns:
        Timezone-aware UTC datetime, or None if value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a datetime to naive UTC for storage.

    Aware values are converted to UTC before the offset is dropped; naive
    values are taken to be UTC already.

    Examples:
        >>> to_storage_utc(datetime.fromisoformat("2024-01-01T10:00:00+08:00"))
        datetime.datetime(2024, 1, 1, 2, 0)
    """
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None)


def years_between(start: date, end: date) -> int:
    """Return the number of whole years from start to end.

    Examples:
        >>> years_between(date(2000, 5, 20), date(2020, 5, 19))
        19
        >>> years_between(date(2000, 5, 20), date(2020, 5, 20))
        20
    """
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years
