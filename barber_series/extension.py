# barber_series/extension.py
"""
Keeps every active series materialized ahead of time.

One run loads the active series, extends each one inside its own transaction
and aggregates the per-series outcome. A series that fails is rolled back and
reported; the remaining ones are still processed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from barber_series.dates import DateLike, add_days_local, to_date
from barber_series.errors import SeriesLoadError, SeriesNotFoundError
from barber_series.materializer import materialize_occurrences
from barber_series.models import Series
from barber_series.occurrences import generate_occurrences, window_end
from barber_series.repository import SeriesRepository

logger = logging.getLogger(__name__)


@dataclass
class SeriesResult:
    series_id: int
    barber_id: int
    customer_name: str
    time_slot: time
    window_start: date
    window_end: date
    last_generated_date: Optional[date]
    created: int = 0
    skipped: int = 0
    exception_skipped: int = 0
    total: int = 0
    created_dates: List[date] = field(default_factory=list)
    skipped_dates: List[date] = field(default_factory=list)
    exception_skipped_dates: List[date] = field(default_factory=list)


@dataclass
class SeriesError:
    series_id: int
    error: str


@dataclass
class ExtensionReport:
    series_processed: int = 0
    total_created: int = 0
    total_skipped: int = 0
    total_exception_skipped: int = 0
    errors: List[SeriesError] = field(default_factory=list)
    details: List[SeriesResult] = field(default_factory=list)
    pause_appointments_marked: Optional[int] = None
    pause_error: Optional[str] = None

    def add(self, result: SeriesResult) -> None:
        self.details.append(result)
        self.total_created += result.created
        self.total_skipped += result.skipped
        self.total_exception_skipped += result.exception_skipped


def extend_series(
    repo: SeriesRepository,
    series: Series,
    today: DateLike,
    weeks: int,
    start_from: Optional[DateLike] = None,
    max_horizon_weeks: Optional[int] = None,
    pause_label: Optional[str] = None,
    tz: Optional[ZoneInfo] = None,
) -> SeriesResult:
    """
    Materialize ``weeks`` of occurrences for one series and commit.

    The window starts at ``start_from`` when given, otherwise at the later of
    the stored horizon and ``today``. ``last_generated_date`` only moves
    forward.
    """
    today = to_date(today, tz)
    if start_from is not None:
        start = to_date(start_from, tz)
    elif series.last_generated_date is not None:
        start = max(to_date(series.last_generated_date, tz), today)
    else:
        start = today

    end = window_end(start, weeks, tz)
    if max_horizon_weeks is not None:
        end = min(end, window_end(today, max_horizon_weeks, tz))

    dates = [day for day in generate_occurrences(series, start, weeks, tz) if day < end]
    outcome = materialize_occurrences(repo, series, dates, pause_label)

    horizon = series.last_generated_date
    if end > start and (horizon is None or end > horizon):
        repo.update_last_generated_date(series, end)
        horizon = end
    repo.commit()

    logger.info(
        f"Series {series.id}: {start}..{end} created={outcome.created} "
        f"skipped={outcome.skipped} exception_skipped={outcome.exception_skipped}"
    )
    return SeriesResult(
        series_id=series.id,
        barber_id=series.barber_id,
        customer_name=series.customer_name,
        time_slot=series.time_slot,
        window_start=start,
        window_end=end,
        last_generated_date=horizon,
        created=outcome.created,
        skipped=outcome.skipped,
        exception_skipped=outcome.exception_skipped,
        total=outcome.total,
        created_dates=outcome.created_dates,
        skipped_dates=outcome.skipped_dates,
        exception_skipped_dates=outcome.exception_skipped_dates,
    )


def _load_active(repo: SeriesRepository, today: date) -> List[Series]:
    try:
        return repo.list_active_series(today)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching active series: {e}")
        raise SeriesLoadError("Failed to fetch series") from e


def _extend_each(repo, active, start_for, **options) -> ExtensionReport:
    report = ExtensionReport()
    # every commit expires the loaded rows, so work from ids and reload
    series_ids = [series.id for series in active]
    for series_id in series_ids:
        report.series_processed += 1
        try:
            series = repo.get_series(series_id)
            if series is None:
                raise SeriesNotFoundError(series_id)
            result = extend_series(repo, series, start_from=start_for(series), **options)
        except Exception as e:
            repo.rollback()
            logger.exception(f"Extending series {series_id} failed")
            report.errors.append(SeriesError(series_id=series_id, error=str(e) or type(e).__name__))
            continue
        report.add(result)
    return report


def extend_all_series(
    repo: SeriesRepository,
    today: DateLike,
    weeks: int,
    max_horizon_weeks: Optional[int] = None,
    pause_label: Optional[str] = None,
    tz: Optional[ZoneInfo] = None,
) -> ExtensionReport:
    """Steady-state run: push every active series' horizon forward."""
    today = to_date(today, tz)
    active = _load_active(repo, today)
    logger.info(f"Extending {len(active)} active series by {weeks} weeks from {today}")

    report = _extend_each(
        repo,
        active,
        start_for=lambda series: None,
        today=today,
        weeks=weeks,
        max_horizon_weeks=max_horizon_weeks,
        pause_label=pause_label,
        tz=tz,
    )
    logger.info(
        f"Series extension finished: processed={report.series_processed} created={report.total_created} "
        f"skipped={report.total_skipped} errors={len(report.errors)}"
    )
    return report


def backfill_series(
    repo: SeriesRepository,
    today: DateLike,
    weeks: int,
    pause_label: str,
    tz: Optional[ZoneInfo] = None,
) -> ExtensionReport:
    """
    One-off migration: materialize every active series from its effective
    start (``max(start_date, today)``), then flag legacy pause rows by label.
    """
    today = to_date(today, tz)
    active = _load_active(repo, today)
    logger.info(f"Backfilling {len(active)} active series for {weeks} weeks")

    report = _extend_each(
        repo,
        active,
        start_for=lambda series: max(to_date(series.start_date, tz), today),
        today=today,
        weeks=weeks,
        pause_label=pause_label,
        tz=tz,
    )

    try:
        report.pause_appointments_marked = repo.mark_pause_appointments(pause_label)
        repo.commit()
    except SQLAlchemyError as e:
        repo.rollback()
        logger.error(f"Marking pause appointments failed: {e}")
        report.pause_appointments_marked = 0
        report.pause_error = str(e)
    return report


def create_series_with_appointments(
    repo: SeriesRepository,
    series: Series,
    today: DateLike,
    weeks: int,
    pause_label: Optional[str] = None,
    tz: Optional[ZoneInfo] = None,
) -> SeriesResult:
    """Persist a new series and its first window in a single transaction."""
    today = to_date(today, tz)
    try:
        repo.add_series(series)
        start = max(to_date(series.start_date, tz), today)
        return extend_series(repo, series, today, weeks, start_from=start, pause_label=pause_label, tz=tz)
    except Exception:
        repo.rollback()
        raise


def cancel_series_from(
    repo: SeriesRepository,
    series: Series,
    from_date: DateLike,
    tz: Optional[ZoneInfo] = None,
) -> int:
    """
    End ``series`` before ``from_date``: its confirmed rows from that day on
    are removed together with the exception records they no longer need.
    Returns the number of deleted appointments.
    """
    from_day = to_date(from_date, tz)
    series.end_date = add_days_local(from_day, -1, tz).date()
    repo.session.add(series)

    deleted = repo.delete_appointments_from(series.id, from_day)
    repo.delete_exceptions_from(series.id, from_day)
    repo.commit()

    logger.info(f"Series {series.id} ends {series.end_date}; removed {deleted} future appointments")
    return deleted
