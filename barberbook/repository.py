# barberbook/repository.py
"""
SQLModel-backed stores used by the availability route and the admission
controller.
"""

import logging
from datetime import date as Date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from barberbook.core import BookedInterval, BookingRequest, ShopAvailabilityConfig, day_window
from barberbook.errors import ShopNotFoundError, SlotConflictError, StoreUnavailableError
from barberbook.models import Appointment, Shop, SLOT_INDEX, STATUS_CANCELLED, STATUS_PENDING

logger = logging.getLogger(__name__)


def to_config(shop: Shop) -> ShopAvailabilityConfig:
    return ShopAvailabilityConfig(
        working_days=frozenset(shop.working_days or []),
        open_time=shop.open_time,
        close_time=shop.close_time,
        shop_name=shop.name,
    )


def is_slot_collision(exc: IntegrityError) -> bool:
    """True if the violation came from the live-appointment start-time index."""
    message = str(exc.orig)
    # PostgreSQL names the index; SQLite lists the indexed columns instead
    return SLOT_INDEX in message or "appointment.shop_id, appointment.starts_at" in message


class SqlShopStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, shop_id: str) -> Optional[Shop]:
        try:
            return self.session.get(Shop, shop_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load shop %s", shop_id)
            raise StoreUnavailableError("Shop store unavailable") from exc

    def get_availability(self, shop_id: str) -> ShopAvailabilityConfig:
        shop = self.get(shop_id)
        if shop is None:
            raise ShopNotFoundError(shop_id)
        return to_config(shop)


class SqlAppointmentStore:
    def __init__(self, session: Session):
        self.session = session

    def list_for_day(self, shop_id: str, day: Date, include_cancelled: bool = False) -> List[Appointment]:
        day_start_dt, day_end_dt = day_window(day)
        stmt = (
            select(Appointment)
            .where(Appointment.shop_id == shop_id)
            .where(Appointment.starts_at >= day_start_dt)
            .where(Appointment.starts_at <= day_end_dt)
        )
        if not include_cancelled:
            stmt = stmt.where(Appointment.status != STATUS_CANCELLED)
        stmt = stmt.order_by(Appointment.starts_at)
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as exc:
            logger.exception("Failed to read appointments for shop %s on %s", shop_id, day)
            raise StoreUnavailableError("Appointment store unavailable") from exc

    def list_active_for_day(self, shop_id: str, day: Date) -> List[BookedInterval]:
        return [
            BookedInterval(start=a.starts_at, duration_minutes=a.duration_minutes, cancelled=False)
            for a in self.list_for_day(shop_id, day)
        ]

    def create(self, request: BookingRequest) -> str:
        db_appt = Appointment(
            shop_id=request.shop_id,
            starts_at=request.starts_at,
            duration_minutes=request.duration_minutes,
            ends_at=request.ends_at,
            status=STATUS_PENDING,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            service_name=request.service_name,
            price=request.price,
            professional_id=request.professional_id,
            client_id=request.client_id,
        )

        # ids are generated client-side, so nothing needs reloading after the commit
        appointment_id = db_appt.id
        self.session.add(db_appt)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if not is_slot_collision(exc):
                logger.exception("Appointment for shop %s violates a store constraint", request.shop_id)
                raise
            raise SlotConflictError("Appointment already exists for that start time") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to write appointment for shop %s", request.shop_id)
            raise StoreUnavailableError("Appointment store unavailable") from exc

        return appointment_id
