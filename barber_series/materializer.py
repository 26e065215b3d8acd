# barber_series/materializer.py

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from barber_series.models import Appointment, Series
from barber_series.repository import SeriesRepository

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_LABEL = "pause"


@dataclass
class MaterializeResult:
    created: int = 0
    skipped: int = 0
    exception_skipped: int = 0
    total: int = 0
    created_dates: List[date] = field(default_factory=list)
    skipped_dates: List[date] = field(default_factory=list)
    exception_skipped_dates: List[date] = field(default_factory=list)


def is_pause_series(series: Series, pause_label: str = DEFAULT_PAUSE_LABEL) -> bool:
    return bool(series.is_pause) or pause_label.lower() in (series.customer_name or "").lower()


def build_appointment(series: Series, day: date, pause_label: str = DEFAULT_PAUSE_LABEL) -> Appointment:
    return Appointment(
        barber_id=series.barber_id,
        date=day,
        time_slot=series.time_slot,
        customer_name=series.customer_name,
        customer_phone=series.customer_phone,
        customer_email=series.customer_email,
        service=series.service,
        series_id=series.id,
        is_pause=is_pause_series(series, pause_label),
        status="confirmed",
        source="manual",
    )


def materialize_occurrences(
    repo: SeriesRepository,
    series: Series,
    dates: Sequence[date],
    pause_label: Optional[str] = None,
) -> MaterializeResult:
    """
    Insert one appointment per candidate date, skipping settled dates.

    A date is settled when an exception record exists for it or this series
    already owns a row on it. Remaining dates go out in a single insert that
    tolerates uniqueness conflicts; a rejected row is counted as skipped. When
    the slot is held by some other appointment the date is also recorded as a
    ``skipped`` exception so later runs leave it alone.

    Storage errors for the batch as a whole propagate to the caller.
    """
    pause_label = pause_label or DEFAULT_PAUSE_LABEL
    candidates = sorted(set(dates))
    result = MaterializeResult(total=len(candidates))
    if not candidates:
        return result

    excepted = repo.exception_dates(series, candidates)
    existing = repo.existing_dates(series, candidates)

    to_insert = []
    for day in candidates:
        if day in excepted:
            result.exception_skipped_dates.append(day)
        elif day in existing:
            result.skipped_dates.append(day)
        else:
            to_insert.append(day)

    inserted = repo.insert_appointments([build_appointment(series, day, pause_label) for day in to_insert])
    rejected = [day for day in to_insert if day not in inserted]

    if rejected:
        # a concurrent run may have inserted our own row in the meantime
        owned = repo.existing_dates(series, rejected)
        for day in rejected:
            if day not in owned:
                logger.warning(f"Series {series.id}: slot {day} {series.time_slot} taken by another appointment")
                repo.record_exception(
                    series_id=series.id,
                    exception_date=day,
                    exception_type="skipped",
                    original_time_slot=series.time_slot,
                    original_barber_id=series.barber_id,
                    reason="conflict_at_generation",
                )
        result.skipped_dates = sorted(result.skipped_dates + rejected)

    result.created_dates = [day for day in to_insert if day in inserted]
    result.created = len(result.created_dates)
    result.skipped = len(result.skipped_dates)
    result.exception_skipped = len(result.exception_skipped_dates)
    return result
