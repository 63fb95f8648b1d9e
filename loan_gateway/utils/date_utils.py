"""Date and time helpers."""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_since(moment: datetime | date, as_of: date | None = None) -> int:
    """Whole days elapsed between ``moment`` and ``as_of`` (default: today UTC)."""
    start = moment.date() if isinstance(moment, datetime) else moment
    end = as_of or utcnow().date()
    return (end - start).days


def add_weeks(start: date, weeks: int) -> date:
    """Return the date ``weeks`` whole weeks after ``start``."""
    return start + timedelta(days=weeks * 7)
