from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from dateutil import parser


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_datetime(value: str | int | float | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return as_utc(parser.isoparse(value))
    except (ValueError, TypeError):
        return None


def as_utc(value: datetime) -> datetime:
    # Naive timestamps from the backend are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(value: datetime | None, max_age_hours: float | None, now: datetime | None = None) -> bool:
    if max_age_hours is None or value is None:
        return False
    now = as_utc(now) if now is not None else utc_now()
    return now - as_utc(value) > timedelta(hours=max_age_hours)
