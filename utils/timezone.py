"""UTC time for token and session expiry.

Every timestamp this package stores or compares is timezone-aware UTC.
Naive datetimes are rejected rather than guessed at.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time in UTC. Use this instead of datetime.now() everywhere."""
    return datetime.now(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse an ISO 8601 string (as written by datetime.isoformat) to UTC.

    Raises ValueError if the string carries no offset.
    """
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return dt.astimezone(timezone.utc)


def is_past(moment: datetime | None, now: datetime | None = None) -> bool:
    """
    True once moment has gone by. None means "never expires".

    Raises ValueError for a naive datetime.
    """
    if moment is None:
        return False
    if moment.tzinfo is None:
        raise ValueError("Cannot compare naive datetime. Datetime must be timezone-aware.")
    return (now or now_utc()) > moment
