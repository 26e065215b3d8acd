# barber_series/routers/cron_routes.py
#
# Entry points for the external scheduler. The weekly job calls /extend,
# /migrate is run by hand once to materialize pre-existing series.

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from barber_series.config import Settings, get_settings
from barber_series.deps import get_repository, get_today, require_cron_bearer, require_cron_secret
from barber_series.errors import SeriesLoadError
from barber_series.extension import ExtensionReport, backfill_series, extend_all_series
from barber_series.repository import SeriesRepository
from barber_series.schemas import BackfillResponse, ExtensionResponse, SeriesDetailOut, SeriesErrorOut

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/series",
    tags=["cron"],
)


def _summary(report: ExtensionReport) -> dict:
    summary = {
        "success": True,
        "series_processed": report.series_processed,
        "total_created": report.total_created,
        "total_skipped": report.total_skipped,
        "total_exception_skipped": report.total_exception_skipped,
    }
    if report.errors:
        summary["errors"] = [
            SeriesErrorOut(series_id=e.series_id, error=e.error) for e in report.errors
        ]
    return summary


@router.get(
    "/extend",
    response_model=ExtensionResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_bearer)],
)
def extend_series_cron(
    repo: SeriesRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    try:
        report = extend_all_series(
            repo,
            today=today,
            weeks=settings.lookahead_weeks,
            max_horizon_weeks=settings.horizon_cap_weeks,
            pause_label=settings.pause_label,
        )
    except SeriesLoadError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return _summary(report)


@router.get(
    "/migrate",
    response_model=BackfillResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_secret)],
)
def migrate_series(
    repo: SeriesRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    try:
        report = backfill_series(
            repo,
            today=today,
            weeks=settings.backfill_weeks,
            pause_label=settings.pause_label,
        )
    except SeriesLoadError as e:
        raise HTTPException(status_code=500, detail=str(e))

    summary = _summary(report)
    summary["details"] = [
        SeriesDetailOut(
            series_id=r.series_id,
            customer_name=r.customer_name,
            barber_id=r.barber_id,
            created=r.created,
            skipped=r.skipped,
            exception_skipped=r.exception_skipped,
            total=r.total,
            last_generated_date=r.last_generated_date,
            created_dates=r.created_dates,
            skipped_dates=r.skipped_dates,
            exception_skipped_dates=r.exception_skipped_dates,
        )
        for r in report.details
    ]
    summary["pause_appointments_marked"] = report.pause_appointments_marked or 0
    summary["pause_error"] = report.pause_error
    return summary
