"""UTC-everywhere time handling for ledger timestamps and reporting windows."""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Every created_at/updated_at in the ledger comes from here.
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Current calendar date in UTC."""
    return now_utc().date()


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to UTC datetime.

    A bare date ("2024-05-01") is read as midnight UTC. Any other
    string without an offset is rejected.
    """
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        if len(iso_string) == 10:
            return dt.replace(tzinfo=timezone.utc)
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return to_utc(dt)


def month_bounds(dt: datetime) -> tuple[datetime, datetime]:
    """
    First instant of dt's month and first instant of the following month (UTC).

    The window is half-open: start <= t < end.
    """
    dt = to_utc(dt)
    start = dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end
