# barberbook/routers/availability_routes.py

import logging
from datetime import date as Date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from barberbook.config import Settings, get_settings
from barberbook.core import MAX_DURATION_MINUTES, get_available_slots
from barberbook.db import get_session
from barberbook.repository import SqlAppointmentStore, SqlShopStore
from barberbook.schemas import AvailabilityResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["availability"],
)


@router.get("/availability", response_model=AvailabilityResponse)
def shop_availability(
    date: Optional[Date] = None,
    shop_id: Optional[str] = None,
    service_duration: Optional[int] = Query(default=None, gt=0, le=MAX_DURATION_MINUTES),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    if date is None or not shop_id or service_duration is None:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: date, shop_id, service_duration",
        )

    # 1) Shop availability (404 if unknown)
    config = SqlShopStore(session).get_availability(shop_id)

    # 2) Same-day bookings; a closed day never needs them
    booked = []
    if config.is_open_on(date):
        booked = SqlAppointmentStore(session).list_active_for_day(shop_id, date)

    # 3) Generate and filter
    result = get_available_slots(
        config, date, service_duration, booked, step_minutes=settings.slot_step_minutes
    )
    logger.debug(
        "Availability for shop %s on %s: %d/%d slots",
        shop_id, date, result.available, result.total_slots,
    )

    return {
        "slots": result.slots,
        "meta": {
            "date": result.date,
            "total_slots": result.total_slots,
            "available": result.available,
            "message": result.message,
        },
    }
