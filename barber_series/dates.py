# barber_series/dates.py
"""
Calendar arithmetic in the shop's local timezone.

All day math goes through local noon: a DST jump happens at 02:00/03:00, so a
noon timestamp never lands on the neighbouring calendar day no matter how many
transitions lie between two dates.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from barber_series.config import get_settings
from barber_series.errors import InvalidDateError

NOON = time(12, 0)

DateLike = Union[date, datetime, str]


def shop_timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().shop_timezone)


def _local_day(value: Union[date, datetime], tz: ZoneInfo) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        # naive datetimes are already shop wall-clock time
        return value.date()
    return value


def format_date_local(value: Union[date, datetime], tz: Optional[ZoneInfo] = None) -> str:
    """Render the shop-local calendar day as ``YYYY-MM-DD`` (never the UTC day)."""
    tz = tz or shop_timezone()
    return _local_day(value, tz).isoformat()


def parse_date_noon(value: str, tz: Optional[ZoneInfo] = None) -> datetime:
    """Parse ``YYYY-MM-DD`` into an aware datetime at local noon of that day."""
    tz = tz or shop_timezone()
    if not isinstance(value, str):
        raise InvalidDateError(f"expected a YYYY-MM-DD string, got {type(value).__name__}")
    try:
        day = date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidDateError(f"invalid calendar date {value!r}") from exc
    return datetime.combine(day, NOON, tzinfo=tz)


def add_days_local(value: Union[date, datetime], days: int, tz: Optional[ZoneInfo] = None) -> datetime:
    """Local noon exactly ``days`` calendar days after ``value``'s local day."""
    tz = tz or shop_timezone()
    day = _local_day(value, tz) + timedelta(days=days)
    return datetime.combine(day, NOON, tzinfo=tz)


def to_date(value: DateLike, tz: Optional[ZoneInfo] = None) -> date:
    if isinstance(value, str):
        return parse_date_noon(value, tz).date()
    if isinstance(value, (date, datetime)):
        return _local_day(value, tz or shop_timezone())
    raise InvalidDateError(f"cannot interpret {value!r} as a calendar date")


def today_local(tz: Optional[ZoneInfo] = None) -> date:
    tz = tz or shop_timezone()
    return datetime.now(tz).date()
