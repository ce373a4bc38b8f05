# barberbook/admission.py
"""
Booking admission: re-check availability at write time and persist the
appointment only if it collides with nothing.

The check and the write are two separate store calls. Without
``serialize_admissions`` two requests that both pass the check before either
commits can both be admitted, except at an identical start time where the
partial unique index on the appointment table rejects the second write.
"""

import logging
import threading
import weakref
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from datetime import date as Date, datetime
from typing import Callable, List, Optional, Protocol

from barberbook.core import (
    BookedInterval,
    BookingRequest,
    ShopAvailabilityConfig,
    active_only,
    overlaps,
)
from barberbook.errors import (
    InvalidBookingError,
    MissingFieldsError,
    OutsideOpeningHoursError,
    ShopClosedError,
    SlotConflictError,
)
from barberbook.notifications import AppointmentSummary

logger = logging.getLogger(__name__)


class ShopConfigStore(Protocol):
    def get_availability(self, shop_id: str) -> ShopAvailabilityConfig:
        """Return the shop's availability, raising ShopNotFoundError if unknown."""


class AppointmentStore(Protocol):
    def list_active_for_day(self, shop_id: str, day: Date) -> List[BookedInterval]:
        """Non-cancelled bookings starting between start and end of ``day``."""

    def create(self, request: BookingRequest) -> str:
        """Persist a pending appointment in one transaction and return its id."""


class ConfirmationNotifier(Protocol):
    def send_confirmation(self, summary: AppointmentSummary):
        ...


class _KeyLock:
    """A plain lock that can sit in a WeakValueDictionary."""

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class AdmissionLocks:
    """
    In-process lock per (shop, date).

    Entries are weak, so a key's lock is dropped once no request holds or
    waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def _lock_for(self, shop_id: str, day: Date) -> _KeyLock:
        with self._guard:
            lock = self._locks.get((shop_id, day))
            if lock is None:
                lock = _KeyLock()
                self._locks[(shop_id, day)] = lock
            return lock

    @contextmanager
    def hold(self, shop_id: str, day: Date):
        lock = self._lock_for(shop_id, day)
        with lock:
            yield


@dataclass(frozen=True)
class Admission:
    appointment_id: str
    starts_at: datetime
    ends_at: datetime
    status: str = "pending"


def _run_now(func, *args):
    func(*args)


class BookingAdmissionController:
    def __init__(
        self,
        shops: ShopConfigStore,
        appointments: AppointmentStore,
        notifier: Optional[ConfirmationNotifier] = None,
        defer: Optional[Callable] = None,
        locks: Optional[AdmissionLocks] = None,
        shop_name: str = "Barbershop",
    ):
        self.shops = shops
        self.appointments = appointments
        self.notifier = notifier
        # defer(func, *args) schedules the notification; FastAPI passes
        # BackgroundTasks.add_task here
        self.defer = defer or _run_now
        self.locks = locks
        self.shop_name = shop_name

    def admit(self, request: BookingRequest) -> Admission:
        missing = request.missing_fields()
        if missing:
            raise MissingFieldsError(missing)
        if request.duration_minutes <= 0:
            raise InvalidBookingError("duration_minutes must be greater than zero")
        try:
            starts_at, ends_at = request.starts_at, request.ends_at
        except (ValueError, OverflowError) as exc:
            raise InvalidBookingError(str(exc)) from exc

        config = self.shops.get_availability(request.shop_id)
        self._check_opening_hours(config, request)

        guard = self.locks.hold(request.shop_id, request.date) if self.locks else nullcontext()
        with guard:
            booked = active_only(self.appointments.list_active_for_day(request.shop_id, request.date))
            if overlaps(starts_at, request.duration_minutes, booked):
                logger.info(
                    "Rejected booking for shop %s at %s: overlaps an existing appointment",
                    request.shop_id, starts_at,
                )
                raise SlotConflictError()
            appointment_id = self.appointments.create(request)

        logger.info(
            "Admitted appointment %s for shop %s at %s (%d min)",
            appointment_id, request.shop_id, starts_at, request.duration_minutes,
        )
        self._schedule_confirmation(request, appointment_id, config.shop_name)
        return Admission(appointment_id=appointment_id, starts_at=starts_at, ends_at=ends_at)

    def _check_opening_hours(self, config: ShopAvailabilityConfig, request: BookingRequest) -> None:
        if not config.is_open_on(request.date):
            logger.info("Rejected booking for shop %s on %s: closed", request.shop_id, request.date)
            raise ShopClosedError()

        open_dt, close_dt = config.opening_bounds(request.date)
        if request.starts_at < open_dt or request.ends_at > close_dt:
            logger.info(
                "Rejected booking for shop %s at %s: outside %s-%s",
                request.shop_id, request.starts_at, config.open_time, config.close_time,
            )
            raise OutsideOpeningHoursError()

    def _schedule_confirmation(
        self, request: BookingRequest, appointment_id: str, shop_name: Optional[str] = None
    ) -> None:
        if self.notifier is None:
            return
        summary = AppointmentSummary(
            shop_id=request.shop_id,
            appointment_id=appointment_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            service_name=request.service_name,
            starts_at=request.starts_at,
            shop_name=shop_name or self.shop_name,
        )
        try:
            self.defer(self._send_confirmation, summary)
        except Exception:
            logger.exception("Could not schedule confirmation for appointment %s", appointment_id)

    def _send_confirmation(self, summary: AppointmentSummary) -> None:
        try:
            self.notifier.send_confirmation(summary)
        except Exception:
            logger.exception("Confirmation for appointment %s failed", summary.appointment_id)
