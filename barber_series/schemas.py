# barber_series/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from datetime import datetime, date as Date, time
from typing import List, Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    barber = "barber"
    client = "client"


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: UserRole


class AppointmentStatus(str, Enum):
    confirmed = "confirmed"
    cancelled = "cancelled"


class ExceptionType(str, Enum):
    deleted = "deleted"
    moved = "moved"
    skipped = "skipped"


# -- series administration ---------------------------------------------------

class SeriesCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    start_date: Date
    end_date: Optional[Date] = None
    time_slot: time
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service: Optional[str] = None
    is_pause: bool = False


class SeriesPublic(BaseModel):
    id: int
    barber_id: int
    customer_name: str
    start_date: Date
    end_date: Optional[Date]
    time_slot: time
    last_generated_date: Optional[Date]
    is_pause: bool
    service: Optional[str] = None


class SeriesCreated(BaseModel):
    series: SeriesPublic
    appointments_created: int
    appointments_skipped: int
    created_dates: List[Date]
    skipped_dates: List[Date]


class SeriesCancel(BaseModel):
    from_date: Date


class SeriesCancelled(BaseModel):
    series: SeriesPublic
    deleted_count: int


class SeriesExtended(BaseModel):
    series_id: int
    created: int
    skipped: int
    exception_skipped: int
    last_generated_date: Optional[Date]


class SeriesExceptionPublic(BaseModel):
    id: int
    series_id: int
    exception_date: Date
    exception_type: ExceptionType
    original_time_slot: Optional[time]
    original_barber_id: Optional[int]
    moved_to_appointment_id: Optional[int]
    reason: Optional[str]


# -- appointments ------------------------------------------------------------

class AppointmentPublic(BaseModel):
    id: int
    barber_id: int
    date: Date
    time_slot: time
    customer_name: str
    series_id: Optional[int]
    is_pause: bool
    status: AppointmentStatus
    cancelled_at: Optional[datetime] = None


class AppointmentMove(BaseModel):
    barber_id: Optional[int] = None
    date: Optional[Date] = None
    time_slot: Optional[time] = None


# -- cron triggers (camelCase on the wire) -----------------------------------

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SeriesErrorOut(CamelModel):
    series_id: int
    error: str


class SeriesDetailOut(CamelModel):
    series_id: int
    customer_name: str
    barber_id: int
    created: int
    skipped: int
    exception_skipped: int
    total: int
    last_generated_date: Optional[Date]
    created_dates: List[Date]
    skipped_dates: List[Date]
    exception_skipped_dates: List[Date]


class ExtensionResponse(CamelModel):
    success: bool = True
    series_processed: int
    total_created: int
    total_skipped: int
    total_exception_skipped: int
    errors: Optional[List[SeriesErrorOut]] = None


class BackfillResponse(ExtensionResponse):
    details: List[SeriesDetailOut]
    pause_appointments_marked: int
    pause_error: Optional[str] = None
