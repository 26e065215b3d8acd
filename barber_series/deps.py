# barber_series/deps.py

import logging
from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from sqlmodel import Session

from barber_series.auth import cron_secret_matches
from barber_series.config import Settings, get_settings
from barber_series.dates import today_local
from barber_series.db import get_session
from barber_series.errors import ConfigurationError
from barber_series.repository import SeriesRepository

logger = logging.getLogger(__name__)


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_today() -> date:
    return today_local()


def get_repository(session: Session = Depends(get_session)) -> SeriesRepository:
    return SeriesRepository(session)


def _check_cron_secret(settings: Settings, authorization: Optional[str], query_secret: Optional[str]):
    try:
        allowed = cron_secret_matches(settings, authorization, query_secret)
    except ConfigurationError as e:
        logger.error(f"Rejecting trigger call: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not allowed:
        logger.warning("Rejecting trigger call with a missing or wrong secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_cron_bearer(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
):
    _check_cron_secret(settings, authorization, None)


def require_cron_secret(
    authorization: Optional[str] = Header(None),
    secret: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
):
    _check_cron_secret(settings, authorization, secret)
