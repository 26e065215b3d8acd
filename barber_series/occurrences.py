# barber_series/occurrences.py
"""Pure weekly scheduling: which calendar dates a series should occupy."""

from datetime import date
from typing import List, Optional
from zoneinfo import ZoneInfo

from barber_series.dates import DateLike, add_days_local, to_date
from barber_series.errors import InvalidDateError, MalformedSeriesError
from barber_series.models import Series

DAYS_PER_WEEK = 7


def window_end(from_date: DateLike, weeks: int, tz: Optional[ZoneInfo] = None) -> date:
    """Exclusive end of a look-ahead window of ``weeks`` starting at ``from_date``."""
    return add_days_local(to_date(from_date, tz), weeks * DAYS_PER_WEEK, tz).date()


def _series_bounds(series: Series, tz: Optional[ZoneInfo]):
    if series.start_date is None:
        raise MalformedSeriesError(series.id, "start_date is not set")
    if series.time_slot is None:
        raise MalformedSeriesError(series.id, "time_slot is not set")
    try:
        start = to_date(series.start_date, tz)
        end = to_date(series.end_date, tz) if series.end_date is not None else None
    except InvalidDateError as exc:
        raise MalformedSeriesError(series.id, str(exc)) from exc
    return start, end


def generate_occurrences(
    series: Series,
    from_date: DateLike,
    weeks: int,
    tz: Optional[ZoneInfo] = None,
) -> List[date]:
    """
    Dates of ``series`` inside ``[from_date, from_date + weeks)``, oldest first.

    The first candidate is the series weekday on or after ``from_date`` (or
    ``start_date`` if that is later); every following one is exactly seven
    local days on. ``end_date`` is inclusive. An empty list is a normal result
    for windows that do not intersect the series.
    """
    start, end = _series_bounds(series, tz)
    first = max(to_date(from_date, tz), start)
    limit = window_end(from_date, weeks, tz)

    offset = (start.weekday() - first.weekday()) % DAYS_PER_WEEK
    current = add_days_local(first, offset, tz).date()

    occurrences = []
    while current < limit and (end is None or current <= end):
        occurrences.append(current)
        current = add_days_local(current, DAYS_PER_WEEK, tz).date()
    return occurrences
