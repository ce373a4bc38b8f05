# barberbook/errors.py
"""
Exception hierarchy for booking admission and the stores behind it.
"""

from typing import Sequence


class BookingError(Exception):
    """Base class for all booking-level errors."""

    status_code = 500
    reason = "ERROR"


class InvalidBookingError(BookingError):
    status_code = 400
    reason = "INVALID_REQUEST"


class MissingFieldsError(InvalidBookingError):
    reason = "MISSING_FIELDS"

    def __init__(self, fields: Sequence[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class SlotConflictError(BookingError):
    """The requested interval cannot be admitted; the client should pick another slot."""

    status_code = 409
    reason = "CONFLICT"

    def __init__(self, message: str = "Slot no longer available"):
        super().__init__(message)


class ShopClosedError(SlotConflictError):
    reason = "SHOP_CLOSED"

    def __init__(self, message: str = "Shop is closed on this day"):
        super().__init__(message)


class OutsideOpeningHoursError(SlotConflictError):
    reason = "OUTSIDE_HOURS"

    def __init__(self, message: str = "Appointment must be within opening hours"):
        super().__init__(message)


class ShopNotFoundError(BookingError):
    status_code = 404
    reason = "SHOP_NOT_FOUND"

    def __init__(self, shop_id: str):
        self.shop_id = shop_id
        super().__init__(f"Shop '{shop_id}' not found")


class StoreUnavailableError(BookingError):
    """Raised when the appointment store cannot be read or written. Retryable."""

    status_code = 503
    reason = "STORE_UNAVAILABLE"


class InvalidTransitionError(BookingError):
    status_code = 409
    reason = "INVALID_TRANSITION"
