# barber_series/routers/appointments_routes.py
#
# Changing a generated appointment leaves an exception record on its series
# date, otherwise the next extension run would put the row right back.

from datetime import date, datetime, timezone
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barber_series.auth import get_current_user
from barber_series.db import get_session
from barber_series.deps import require_role
from barber_series.models import Appointment
from barber_series.repository import SeriesRepository
from barber_series.schemas import AppointmentMove, AppointmentPublic


router = APIRouter(
    tags=["appointments"],
)


def get_barber_appointment(appt_id: int, session: Session, current_user: dict) -> Appointment:
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if target.barber_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return target


@router.get("/barbers/me/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    status: Optional[str] = "confirmed",
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    if status not in ("confirmed", "cancelled", "all"):
        raise HTTPException(status_code=422, detail="status must be 'confirmed', 'cancelled', or 'all'")

    stmt = select(Appointment).where(Appointment.barber_id == current_user["id"])

    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)

    if status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date, Appointment.time_slot)

    return session.exec(stmt).all()


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    # 1) Find the appointment in DB
    target = get_barber_appointment(appt_id, session, current_user)

    # 2) Already cancelled?
    if target.status == "cancelled":
        raise HTTPException(status_code=409, detail="Appointment already cancelled")

    # 3) Cancel and persist
    target.status = "cancelled"
    target.cancelled_at = datetime.now(timezone.utc)
    session.add(target)

    # 4) Series row: keep the date from being generated again
    if target.series_id is not None:
        SeriesRepository(session).record_exception(
            series_id=target.series_id,
            exception_date=target.date,
            exception_type="deleted",
            original_time_slot=target.time_slot,
            original_barber_id=target.barber_id,
            reason="appointment_cancelled",
        )

    session.commit()
    session.refresh(target)
    return target


@router.delete("/appointments/{appt_id}", status_code=204)
def delete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    target = get_barber_appointment(appt_id, session, current_user)

    if target.series_id is not None:
        SeriesRepository(session).record_exception(
            series_id=target.series_id,
            exception_date=target.date,
            exception_type="deleted",
            original_time_slot=target.time_slot,
            original_barber_id=target.barber_id,
            reason="appointment_deleted",
        )

    session.delete(target)
    session.commit()


@router.patch("/appointments/{appt_id}/move", response_model=AppointmentPublic)
def move_appointment(
    appt_id: int,
    move: AppointmentMove,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    target = get_barber_appointment(appt_id, session, current_user)

    # 1) Resolve the target slot
    original_date = target.date
    original_slot = target.time_slot
    original_barber = target.barber_id

    new_barber = move.barber_id or target.barber_id
    new_date = move.date or target.date
    new_slot = move.time_slot or target.time_slot

    if (new_barber, new_date, new_slot) == (original_barber, original_date, original_slot):
        return target

    # 2) Reject a slot already held by a confirmed appointment
    occupied = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == new_barber)
        .where(Appointment.date == new_date)
        .where(Appointment.time_slot == new_slot)
        .where(Appointment.id != appt_id)
        .where(Appointment.status == "confirmed")
    ).first()
    if occupied is not None:
        raise HTTPException(status_code=409, detail="This time slot is already booked")

    # 3) Series row: the original date becomes a "moved" exception
    if target.series_id is not None:
        SeriesRepository(session).record_exception(
            series_id=target.series_id,
            exception_date=original_date,
            exception_type="moved",
            original_time_slot=original_slot,
            original_barber_id=original_barber,
            moved_to_appointment_id=target.id,
            reason="appointment_moved",
        )

    target.barber_id = new_barber
    target.date = new_date
    target.time_slot = new_slot
    session.add(target)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="This time slot is already booked")

    session.refresh(target)
    return target
