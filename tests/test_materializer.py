from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from barber_series.materializer import build_appointment, is_pause_series, materialize_occurrences
from barber_series.models import Appointment, SeriesException
from barber_series.repository import SeriesRepository

from tests.conftest import TODAY

MONDAYS = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]


def series_rows(session, series):
    return session.exec(
        select(Appointment).where(Appointment.series_id == series.id).order_by(Appointment.date)
    ).all()


def test_inserts_every_free_date(session, make_series):
    series = make_series()
    repo = SeriesRepository(session)

    result = materialize_occurrences(repo, series, MONDAYS)
    repo.commit()

    assert (result.created, result.skipped, result.exception_skipped, result.total) == (4, 0, 0, 4)
    assert result.created_dates == MONDAYS
    rows = series_rows(session, series)
    assert [row.date for row in rows] == MONDAYS
    assert all(row.status == "confirmed" and row.time_slot == time(10, 0) for row in rows)


def test_second_pass_skips_existing_rows(session, make_series):
    series = make_series()
    repo = SeriesRepository(session)
    materialize_occurrences(repo, series, MONDAYS)
    repo.commit()

    result = materialize_occurrences(repo, series, MONDAYS)

    assert (result.created, result.skipped) == (0, 4)
    assert result.skipped_dates == MONDAYS
    assert len(series_rows(session, series)) == 4


def test_exception_dates_are_never_created(session, make_series):
    series = make_series()
    repo = SeriesRepository(session)
    repo.record_exception(series.id, date(2024, 1, 15), "deleted", reason="appointment_deleted")

    result = materialize_occurrences(repo, series, MONDAYS)

    assert (result.created, result.skipped, result.exception_skipped) == (3, 0, 1)
    assert result.exception_skipped_dates == [date(2024, 1, 15)]
    assert date(2024, 1, 15) not in [row.date for row in series_rows(session, series)]


def test_slot_held_by_another_booking_is_skipped_and_recorded(session, make_series, barber):
    series = make_series()
    session.add(
        Appointment(barber_id=barber.id, date=date(2024, 1, 8), time_slot=time(10, 0), customer_name="Walk-in")
    )
    session.commit()
    repo = SeriesRepository(session)

    result = materialize_occurrences(repo, series, MONDAYS)
    repo.commit()

    assert (result.created, result.skipped) == (3, 1)
    assert result.skipped_dates == [date(2024, 1, 8)]

    exception = session.exec(select(SeriesException).where(SeriesException.series_id == series.id)).one()
    assert exception.exception_date == date(2024, 1, 8)
    assert exception.exception_type == "skipped"
    assert exception.reason == "conflict_at_generation"

    # from now on that date counts as settled by the exception
    rerun = materialize_occurrences(repo, series, MONDAYS)
    assert (rerun.created, rerun.skipped, rerun.exception_skipped) == (0, 3, 1)


def test_cancelled_booking_does_not_hold_the_slot(session, make_series, barber):
    series = make_series()
    session.add(
        Appointment(
            barber_id=barber.id,
            date=date(2024, 1, 8),
            time_slot=time(10, 0),
            customer_name="Walk-in",
            status="cancelled",
        )
    )
    session.commit()
    repo = SeriesRepository(session)

    result = materialize_occurrences(repo, series, MONDAYS)

    assert (result.created, result.skipped) == (4, 0)
    assert session.exec(select(SeriesException)).all() == []


def test_row_inserted_by_a_concurrent_run_counts_as_skipped(session, make_series):
    series = make_series()

    class RacingRepository(SeriesRepository):
        def insert_appointments(self, rows):
            # another run got there first; nothing is left for this insert
            super().insert_appointments(rows)
            return set()

    result = materialize_occurrences(RacingRepository(session), series, MONDAYS)

    assert (result.created, result.skipped, result.exception_skipped) == (0, 4, 0)
    assert result.skipped_dates == MONDAYS
    assert session.exec(select(SeriesException)).all() == []
    assert len(series_rows(session, series)) == 4


def test_empty_candidate_list(session, make_series):
    result = materialize_occurrences(SeriesRepository(session), make_series(), [])
    assert (result.created, result.skipped, result.exception_skipped, result.total) == (0, 0, 0, 0)


def test_batch_storage_failure_propagates(session, make_series):
    class BrokenRepository(SeriesRepository):
        def insert_appointments(self, rows):
            raise OperationalError("INSERT INTO appointment", {}, Exception("database is locked"))

    with pytest.raises(OperationalError):
        materialize_occurrences(BrokenRepository(session), make_series(), MONDAYS)


class TestPauseFlag:
    def test_dedicated_flag(self, make_series):
        assert is_pause_series(make_series(is_pause=True))

    def test_label_convention(self, make_series):
        assert is_pause_series(make_series(customer_name="Mittagspause"))
        assert not is_pause_series(make_series(customer_name="Max Mustermann"))

    def test_generated_row_carries_pause_flag(self, make_series):
        row = build_appointment(make_series(customer_name="PAUSE"), TODAY)
        assert row.is_pause is True
        assert row.series_id is not None
