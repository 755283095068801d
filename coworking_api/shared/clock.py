"""Local time of the coworking space"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from ..config import TIMEZONE

LOCAL_TZ = ZoneInfo(TIMEZONE)


def local_now() -> datetime:
    """Naive wall-clock time in the space's timezone"""
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def to_local_naive(value: datetime) -> datetime:
    """Naive local time for a datetime, converting aware values to the space's timezone first"""
    if value.tzinfo is None:
        return value
    return value.astimezone(LOCAL_TZ).replace(tzinfo=None)
