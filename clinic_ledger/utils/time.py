"""Time and date utilities.

Dates travel over the wire as epoch milliseconds and are stored as calendar
days in UTC.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def epoch_millis_to_date(millis: int) -> date:
    """Convert epoch milliseconds to the UTC calendar day they fall on.

    Args:
        millis: Milliseconds since 1970-01-01T00:00:00Z

    Returns:
        The UTC date
    """
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).date()


def date_to_epoch_millis(day: date) -> int:
    """Convert a calendar day to epoch milliseconds at UTC midnight."""
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return int(midnight.timestamp() * 1000)
