from datetime import date, time
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from barber_series import models  # noqa: F401
from barber_series.auth import create_access_token
from barber_series.config import Settings, get_settings
from barber_series.db import get_session
from barber_series.deps import get_today
from barber_series.main import app
from barber_series.models import Series, User

TODAY = date(2024, 1, 1)  # a Monday
BERLIN = ZoneInfo("Europe/Berlin")
CRON_SECRET = "test-cron-secret"


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(
        _env_file=None,
        cron_secret=CRON_SECRET,
        secret_key="test-jwt-key",
        shop_timezone="Europe/Berlin",
        lookahead_weeks=52,
        backfill_weeks=52,
    )


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session, settings):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_today] = lambda: TODAY

    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(name="barber")
def barber_fixture(session):
    user = User(email="barber@example.com", password_hash="not-used", role="barber")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(barber, settings):
    token = create_access_token({"sub": barber.email}, settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="cron_headers")
def cron_headers_fixture():
    return {"Authorization": f"Bearer {CRON_SECRET}"}


@pytest.fixture(name="make_series")
def make_series_fixture(session, barber):
    def make_series(**overrides):
        values = {
            "barber_id": barber.id,
            "customer_name": "Max Mustermann",
            "start_date": TODAY,
            "time_slot": time(10, 0),
            "last_generated_date": TODAY,
        }
        values.update(overrides)
        series = Series(**values)
        session.add(series)
        session.commit()
        session.refresh(series)
        return series

    return make_series
