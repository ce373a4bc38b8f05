# barberbook/routers/shops_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barberbook.config import Settings, get_settings
from barberbook.core import day_window, parse_hhmm
from barberbook.db import get_session
from barberbook.models import Appointment, Shop
from barberbook.schemas import AppointmentPublic, ShopAvailability, ShopCreate, ShopPublic

router = APIRouter(
    prefix="/shops",
    tags=["shops"],
)


def _validate_availability(availability: ShopAvailability) -> None:
    for day in availability.working_days:
        if not (0 <= day <= 6):
            raise HTTPException(status_code=422, detail="working_days must be integers between 0 and 6")
    if len(availability.working_days) != len(set(availability.working_days)):
        raise HTTPException(status_code=422, detail="working_days cannot contain duplicates")

    if parse_hhmm(availability.open_time) >= parse_hhmm(availability.close_time):
        raise HTTPException(status_code=422, detail="open_time must be earlier than close_time")


def _get_shop_or_404(session: Session, shop_id: str) -> Shop:
    shop = session.get(Shop, shop_id)
    if shop is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop


@router.post("", response_model=ShopPublic, status_code=201)
def create_shop(
    shop: ShopCreate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    availability = shop.availability or ShopAvailability(
        working_days=settings.default_working_days,
        open_time=settings.default_open_time,
        close_time=settings.default_close_time,
    )
    _validate_availability(availability)

    db_shop = Shop(
        name=shop.name,
        working_days=sorted(availability.working_days),
        open_time=availability.open_time,
        close_time=availability.close_time,
    )
    session.add(db_shop)
    session.commit()
    session.refresh(db_shop)
    return db_shop


@router.get("/{shop_id}/availability", response_model=ShopAvailability)
def get_shop_availability(
    shop_id: str,
    session: Session = Depends(get_session),
):
    db_shop = _get_shop_or_404(session, shop_id)
    return {
        "working_days": db_shop.working_days,
        "open_time": db_shop.open_time,
        "close_time": db_shop.close_time,
    }


@router.put("/{shop_id}/availability", response_model=ShopAvailability)
def update_shop_availability(
    shop_id: str,
    availability: ShopAvailability,
    session: Session = Depends(get_session),
):
    _validate_availability(availability)
    db_shop = _get_shop_or_404(session, shop_id)

    db_shop.working_days = sorted(availability.working_days)
    db_shop.open_time = availability.open_time
    db_shop.close_time = availability.close_time

    session.add(db_shop)
    session.commit()
    session.refresh(db_shop)

    return {
        "working_days": db_shop.working_days,
        "open_time": db_shop.open_time,
        "close_time": db_shop.close_time,
    }


@router.get("/{shop_id}/appointments", response_model=List[AppointmentPublic])
def list_shop_appointments(
    shop_id: str,
    status: Optional[str] = "active",
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
):
    _get_shop_or_404(session, shop_id)

    if status not in ("active", "pending", "confirmed", "cancelled", "all"):
        raise HTTPException(
            status_code=422,
            detail="status must be 'active', 'pending', 'confirmed', 'cancelled', or 'all'",
        )

    stmt = select(Appointment).where(Appointment.shop_id == shop_id)

    if on_date is not None:
        day_start_dt, day_end_dt = day_window(on_date)
        stmt = stmt.where(Appointment.starts_at >= day_start_dt).where(Appointment.starts_at <= day_end_dt)

    if status == "active":
        stmt = stmt.where(Appointment.status != "cancelled")
    elif status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.starts_at)

    return session.exec(stmt).all()
