"""UTC time helpers. Calendar days are always UTC days."""

from datetime import date, datetime, time, timedelta, timezone

ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalise *value* to a timezone-aware UTC datetime (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    """Midnight (UTC) of the calendar day containing *value*."""
    return datetime.combine(ensure_utc(value).date(), time.min, tzinfo=timezone.utc)


def utc_date(value: datetime) -> date:
    return ensure_utc(value).date()
