from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dailychallenge.core.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today(tz_name: str = "UTC", now: Optional[datetime] = None) -> date:
    """Calendar date in the configured challenge timezone."""
    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).date()


def to_date_key(day: date) -> str:
    return day.isoformat()


def parse_date_key(date_key: str) -> date:
    """Parse a YYYY-MM-DD key, rejecting anything else."""
    try:
        parsed = date.fromisoformat(date_key)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {date_key!r}; expected YYYY-MM-DD")
    if parsed.isoformat() != date_key:
        raise ValidationError(f"Invalid date {date_key!r}; expected YYYY-MM-DD")
    return parsed
