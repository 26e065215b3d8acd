# barber_series/repository.py

import logging
from datetime import date, time
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, or_, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from barber_series.models import Appointment, Series, SeriesException

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class SeriesRepository:
    """Storage boundary for series, their appointments and exceptions.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    # -- series ------------------------------------------------------------

    def list_active_series(self, today: date) -> List[Series]:
        stmt = (
            select(Series)
            .where(or_(col(Series.end_date).is_(None), col(Series.end_date) > today))
            .order_by(Series.id)
        )
        return list(self.session.exec(stmt).all())

    def list_series_for_barber(self, barber_id: int) -> List[Series]:
        stmt = (
            select(Series)
            .where(Series.barber_id == barber_id)
            .order_by(Series.start_date, Series.time_slot)
        )
        return list(self.session.exec(stmt).all())

    def get_series(self, series_id: int) -> Optional[Series]:
        return self.session.get(Series, series_id)

    def add_series(self, series: Series) -> Series:
        self.session.add(series)
        self.session.flush()  # fills series.id
        return series

    def update_last_generated_date(self, series: Series, value: date) -> None:
        series.last_generated_date = value
        self.session.add(series)
        self.session.flush()

    # -- appointments ------------------------------------------------------

    def existing_dates(self, series: Series, dates: Iterable[date]) -> Set[date]:
        dates = list(dates)
        if not dates:
            return set()
        stmt = (
            select(Appointment.date)
            .where(Appointment.series_id == series.id)
            .where(col(Appointment.date).in_(dates))
        )
        return set(self.session.exec(stmt).all())

    def insert_appointments(self, rows: List[Appointment]) -> Set[date]:
        """Bulk insert; rows hitting a uniqueness constraint are dropped.

        Returns the dates that were actually inserted.
        """
        if not rows:
            return set()

        dialect = self.session.get_bind().dialect.name
        insert = UPSERT_DIALECTS.get(dialect)
        if insert is None:
            return self._insert_with_savepoints(rows)

        values = [row.model_dump(exclude={"id"}) for row in rows]
        stmt = (
            insert(Appointment)
            .values(values)
            .on_conflict_do_nothing()
            .returning(col(Appointment.date))
        )
        result = self.session.execute(stmt)
        return {row[0] for row in result}

    def _insert_with_savepoints(self, rows: List[Appointment]) -> Set[date]:
        inserted = set()
        for row in rows:
            try:
                with self.session.begin_nested():
                    self.session.add(row)
            except IntegrityError:
                logger.debug(f"Slot {row.date} {row.time_slot} for barber {row.barber_id} already taken")
                continue
            inserted.add(row.date)
        return inserted

    def delete_appointments_from(self, series_id: int, from_date: date) -> int:
        stmt = (
            delete(Appointment)
            .where(col(Appointment.series_id) == series_id)
            .where(col(Appointment.date) >= from_date)
            .where(col(Appointment.status) == "confirmed")
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    def mark_pause_appointments(self, label: str) -> int:
        """Flag every appointment whose customer label contains ``label`` as a pause."""
        stmt = (
            update(Appointment)
            .where(col(Appointment.customer_name).icontains(label, autoescape=True))
            .where(col(Appointment.is_pause) == False)  # noqa: E712
            .values(is_pause=True)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    # -- exceptions --------------------------------------------------------

    def exception_dates(self, series: Series, dates: Iterable[date]) -> Set[date]:
        dates = list(dates)
        if not dates:
            return set()
        stmt = (
            select(SeriesException.exception_date)
            .where(SeriesException.series_id == series.id)
            .where(col(SeriesException.exception_date).in_(dates))
        )
        return set(self.session.exec(stmt).all())

    def record_exception(
        self,
        series_id: int,
        exception_date: date,
        exception_type: str,
        original_time_slot: Optional[time] = None,
        original_barber_id: Optional[int] = None,
        moved_to_appointment_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> SeriesException:
        # one exception per (series, date): overwrite an existing record
        record = self.session.exec(
            select(SeriesException)
            .where(SeriesException.series_id == series_id)
            .where(SeriesException.exception_date == exception_date)
        ).first()
        if record is None:
            record = SeriesException(series_id=series_id, exception_date=exception_date, exception_type=exception_type)
        record.exception_type = exception_type
        record.original_time_slot = original_time_slot
        record.original_barber_id = original_barber_id
        record.moved_to_appointment_id = moved_to_appointment_id
        record.reason = reason

        self.session.add(record)
        self.session.flush()
        return record

    def list_exceptions(self, series_id: int) -> List[SeriesException]:
        stmt = (
            select(SeriesException)
            .where(SeriesException.series_id == series_id)
            .order_by(SeriesException.exception_date)
        )
        return list(self.session.exec(stmt).all())

    def delete_exception(self, series_id: int, exception_date: date) -> bool:
        stmt = (
            delete(SeriesException)
            .where(col(SeriesException.series_id) == series_id)
            .where(col(SeriesException.exception_date) == exception_date)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def delete_exceptions_from(self, series_id: int, from_date: date) -> int:
        stmt = (
            delete(SeriesException)
            .where(col(SeriesException.series_id) == series_id)
            .where(col(SeriesException.exception_date) >= from_date)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    # -- transaction -------------------------------------------------------

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
