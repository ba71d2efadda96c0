"""UTC datetime utilities."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_today(now: datetime | None = None) -> date:
    """Calendar date in UTC — the day boundary used for daily cancellation counts."""
    return (now or utc_now()).astimezone(timezone.utc).date()
