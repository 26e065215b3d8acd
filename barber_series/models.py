# barber_series/models.py

from typing import Optional
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # barber or client


class Series(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(index=True, foreign_key="user.id")
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service: Optional[str] = None

    start_date: Date  # anchors the weekday
    end_date: Optional[Date] = Field(default=None, index=True)
    time_slot: time
    last_generated_date: Optional[Date] = None
    is_pause: bool = False

    created_at: datetime = Field(default_factory=utcnow)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # a cancelled row keeps its record but frees the slot
        Index(
            "uq_barber_date_slot_confirmed",
            "barber_id",
            "date",
            "time_slot",
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
        UniqueConstraint("series_id", "date", name="uq_series_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(index=True)
    date: Date = Field(index=True)
    time_slot: time
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service: Optional[str] = None

    series_id: Optional[int] = Field(default=None, index=True, foreign_key="series.id")
    is_pause: bool = False
    status: str = "confirmed"  # confirmed or cancelled
    source: str = "manual"  # manual or online
    cancelled_at: Optional[datetime] = None


class SeriesException(SQLModel, table=True):
    __tablename__ = "series_exception"
    __table_args__ = (
        UniqueConstraint("series_id", "exception_date", name="uq_series_exception_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    series_id: int = Field(index=True, foreign_key="series.id")
    exception_date: Date
    exception_type: str  # deleted, moved or skipped
    original_time_slot: Optional[time] = None
    original_barber_id: Optional[int] = None
    moved_to_appointment_id: Optional[int] = None
    reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
