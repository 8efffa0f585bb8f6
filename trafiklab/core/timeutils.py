from datetime import datetime, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

STOCKHOLM = ZoneInfo("Europe/Stockholm")

HAFAS_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_stockholm(value: datetime) -> datetime:
    """Convert to Stockholm local time. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(STOCKHOLM)


def parse_local(date: str, time: str) -> Optional[datetime]:
    """Parse a HAFAS date and time pair in Stockholm time, None if either is blank."""
    if not date or not time:
        return None
    return datetime.strptime(f"{date} {time}", HAFAS_DATETIME_FORMAT).replace(tzinfo=STOCKHOLM)


def parse_scheduled_and_realtime(
    date: str, time: str, rt_date: str, rt_time: str
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Parse scheduled and real-time timestamps.

    The real-time value falls back to the scheduled one when missing.
    """
    scheduled = parse_local(date, time)
    realtime = parse_local(rt_date, rt_time)
    if realtime is None:
        realtime = scheduled
    return scheduled, realtime


def parse_iso_local(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp, None if blank.

    Timestamps without an offset are Stockholm local time.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=STOCKHOLM)
    return parsed
