"""Calendar helpers: overnights, calendar days touched, advance-booking window.

All counts work on local wall-clock dates (midnight-to-midnight), the way
the operator's calendar sees the trip.
"""

from datetime import date as Date
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def compute_overnights(depart: datetime, ret: Optional[datetime]) -> int:
    """Midnight boundaries crossed between depart and return, floored at 0."""
    if ret is None:
        return 0
    return max(0, (ret.date() - depart.date()).days)


def calendar_days_touched(depart: datetime, ret: Optional[datetime] = None) -> int:
    """Number of calendar dates from departure through return, at least 1."""
    end = ret or depart
    return max(1, (end.date() - depart.date()).days + 1)


def list_dates_touched(depart: datetime, ret: Optional[datetime] = None) -> list[Date]:
    """Every local date from departure through return (inclusive)."""
    start = depart.date()
    return [start + timedelta(days=i) for i in range(calendar_days_touched(depart, ret))]


def is_same_local_date(depart: datetime, ret: Optional[datetime]) -> bool:
    return ret is not None and depart.date() == ret.date()


def localize(moment: datetime, tz_name: Optional[str]) -> datetime:
    """Attach ``tz_name`` to a naive local timestamp. Aware values pass through.

    Naive values stay naive when the zone is unknown.
    """
    if moment.tzinfo is not None or not tz_name:
        return moment
    try:
        return moment.replace(tzinfo=ZoneInfo(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        return moment


def days_until(depart: datetime, tz_name: Optional[str], now: datetime) -> float:
    """Fractional days between ``now`` and the local departure time.

    A departure whose zone is unknown is read as UTC, so the window never
    depends on the host's timezone. A naive ``now`` is read as UTC too.
    """
    when = localize(depart, tz_name)
    if when.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    elif when.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (when - now).total_seconds() / 86400
