# barber_series/routers/series_routes.py

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from barber_series.auth import get_current_user
from barber_series.config import Settings, get_settings
from barber_series.deps import get_repository, get_today, require_role
from barber_series.extension import cancel_series_from, create_series_with_appointments, extend_series
from barber_series.models import Series
from barber_series.repository import SeriesRepository
from barber_series.schemas import (
    SeriesCancel,
    SeriesCancelled,
    SeriesCreate,
    SeriesCreated,
    SeriesExceptionPublic,
    SeriesExtended,
    SeriesPublic,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/series",
    tags=["series"],
)


def get_owned_series(series_id: int, repo: SeriesRepository, current_user: dict) -> Series:
    series = repo.get_series(series_id)
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    if series.barber_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return series


@router.post("", response_model=SeriesCreated, status_code=201)
def create_series(
    payload: SeriesCreate,
    repo: SeriesRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")  # only barbers own series

    # 1) Validate the recurrence window
    if payload.end_date is not None and payload.end_date < payload.start_date:
        raise HTTPException(status_code=422, detail="end_date cannot be before start_date")
    if payload.end_date is not None and payload.end_date <= today:
        raise HTTPException(status_code=422, detail="Series would already be over")

    # 2) Validate slot alignment
    if payload.time_slot.minute % settings.slot_minutes != 0:
        raise HTTPException(
            status_code=422,
            detail=f"Time slot must be in {settings.slot_minutes}-minute increments",
        )

    # 3) Persist and materialize the first window
    series = Series(
        barber_id=current_user["id"],
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        customer_email=payload.customer_email,
        service=payload.service,
        start_date=payload.start_date,
        end_date=payload.end_date,
        time_slot=payload.time_slot,
        is_pause=payload.is_pause,
    )
    try:
        result = create_series_with_appointments(
            repo, series, today, settings.lookahead_weeks, pause_label=settings.pause_label
        )
    except SQLAlchemyError as e:
        logger.error(f"Creating series for barber {current_user['id']} failed: {e}")
        raise HTTPException(status_code=500, detail="Series could not be created")

    repo.session.refresh(series)
    return {
        "series": series,
        "appointments_created": result.created,
        "appointments_skipped": result.skipped,
        "created_dates": result.created_dates,
        "skipped_dates": result.skipped_dates,
    }


@router.get("", response_model=List[SeriesPublic])
def list_my_series(
    repo: SeriesRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    return repo.list_series_for_barber(current_user["id"])


@router.get("/{series_id}", response_model=SeriesPublic)
def get_series(
    series_id: int,
    repo: SeriesRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    return get_owned_series(series_id, repo, current_user)


@router.post("/{series_id}/extend", response_model=SeriesExtended)
def extend_one_series(
    series_id: int,
    repo: SeriesRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    series = get_owned_series(series_id, repo, current_user)

    if series.end_date is not None and series.end_date <= today:
        raise HTTPException(status_code=409, detail="Series has ended")

    result = extend_series(
        repo,
        series,
        today,
        settings.lookahead_weeks,
        max_horizon_weeks=settings.horizon_cap_weeks,
        pause_label=settings.pause_label,
    )
    return {
        "series_id": result.series_id,
        "created": result.created,
        "skipped": result.skipped,
        "exception_skipped": result.exception_skipped,
        "last_generated_date": result.last_generated_date,
    }


@router.post("/{series_id}/cancel", response_model=SeriesCancelled)
def cancel_series(
    series_id: int,
    payload: SeriesCancel,
    repo: SeriesRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    series = get_owned_series(series_id, repo, current_user)

    if payload.from_date <= series.start_date:
        raise HTTPException(status_code=422, detail="from_date must be after the series start")

    deleted = cancel_series_from(repo, series, payload.from_date)
    repo.session.refresh(series)
    return {"series": series, "deleted_count": deleted}


@router.get("/{series_id}/exceptions", response_model=List[SeriesExceptionPublic])
def list_series_exceptions(
    series_id: int,
    repo: SeriesRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    get_owned_series(series_id, repo, current_user)
    return repo.list_exceptions(series_id)


@router.delete("/{series_id}/exceptions/{exception_date}", status_code=204)
def delete_series_exception(
    series_id: int,
    exception_date: date,
    repo: SeriesRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    get_owned_series(series_id, repo, current_user)

    if not repo.delete_exception(series_id, exception_date):
        raise HTTPException(status_code=404, detail="Exception not found")
    repo.commit()
