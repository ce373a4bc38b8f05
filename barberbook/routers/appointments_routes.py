# barberbook/routers/appointments_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barberbook.db import get_session
from barberbook.errors import InvalidTransitionError
from barberbook.models import Appointment, STATUS_CANCELLED, STATUS_CONFIRMED, STATUS_PENDING
from barberbook.schemas import AppointmentPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)

# status -> statuses it may move to
TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_CANCELLED},
    STATUS_CANCELLED: set(),
}


def _transition(session: Session, appt_id: str, new_status: str) -> Appointment:
    # 1) Find the appointment in DB
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    # 2) Allowed from its current status?
    if new_status not in TRANSITIONS.get(target.status, set()):
        raise InvalidTransitionError(f"Appointment already {target.status}")

    # 3) Persist; time bounds never change here
    target.status = new_status
    session.add(target)
    session.commit()
    session.refresh(target)

    logger.info("Appointment %s is now %s", appt_id, new_status)
    return target


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
):
    return _transition(session, appt_id, STATUS_CANCELLED)


@router.patch("/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
):
    return _transition(session, appt_id, STATUS_CONFIRMED)
