# barberbook/core.py
"""
Slot generation, interval overlap and availability calculation.

Everything in here is pure: no sessions, no settings, no I/O. The routers and
the admission controller feed it plain values read from the store.
"""

from dataclasses import dataclass, field
from datetime import date as Date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence

DEFAULT_STEP_MINUTES = 30
DEFAULT_DURATION_MINUTES = 30
# no service can outlast a single day
MAX_DURATION_MINUTES = 24 * 60
CLOSED_MESSAGE = "Closed on this day"


def parse_hhmm(value: str) -> time:
    """Parse a wall-clock "HH:mm" string."""
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")


def to_minutes(value: str) -> int:
    t = parse_hhmm(value)
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(day: Date) -> int:
    # date.weekday() is 0=Monday; shops store 0=Sunday..6=Saturday
    return (day.weekday() + 1) % 7


def day_window(day: Date) -> tuple[datetime, datetime]:
    """Start-of-day and end-of-day bounds (inclusive) for a calendar date."""
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time.max)
    return start, end


@dataclass(frozen=True)
class ShopAvailabilityConfig:
    working_days: frozenset
    open_time: str
    close_time: str
    shop_name: Optional[str] = None

    def is_open_on(self, day: Date) -> bool:
        return day_of_week(day) in self.working_days

    def opening_bounds(self, day: Date) -> tuple[datetime, datetime]:
        return (
            datetime.combine(day, parse_hhmm(self.open_time)),
            datetime.combine(day, parse_hhmm(self.close_time)),
        )


@dataclass(frozen=True)
class BookedInterval:
    """An existing appointment as seen by the overlap check."""
    start: datetime
    duration_minutes: Optional[int] = None
    cancelled: bool = False

    @property
    def effective_duration(self) -> int:
        # unknown duration is treated as a default-length booking, never zero-width
        if not self.duration_minutes or self.duration_minutes <= 0:
            return DEFAULT_DURATION_MINUTES
        return self.duration_minutes

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.effective_duration)


@dataclass(frozen=True)
class BookingRequest:
    shop_id: Optional[str]
    date: Optional[Date]
    start: Optional[str]
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    service_name: Optional[str] = None
    price: float = 0.0
    professional_id: Optional[str] = None
    client_id: Optional[str] = None

    REQUIRED = ("shop_id", "date", "start", "customer_name", "customer_phone", "service_name")

    def missing_fields(self) -> List[str]:
        missing = []
        for name in self.REQUIRED:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, parse_hhmm(self.start))

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)


@dataclass
class AvailabilityResult:
    date: Date
    slots: List[str] = field(default_factory=list)
    total_slots: int = 0
    message: Optional[str] = None

    @property
    def available(self) -> int:
        return len(self.slots)

    @property
    def closed(self) -> bool:
        return self.message is not None


def generate_slots(
    open_time: str,
    close_time: str,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    duration_minutes: Optional[int] = None,
) -> List[str]:
    """
    Candidate start times from open_time (inclusive) to close_time (exclusive).

    When duration_minutes is given, slots whose service would run past
    close_time are dropped as well.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be a positive integer")

    current = to_minutes(open_time)
    end = to_minutes(close_time)

    slots = []
    while current < end:
        if duration_minutes is None or current + duration_minutes <= end:
            slots.append(from_minutes(current))
        current += step_minutes
    return slots


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open [start, end) overlap; touching intervals do not overlap."""
    return start_a < end_b and start_b < end_a


def overlaps(
    candidate_start: datetime,
    candidate_duration: int,
    booked: Iterable[BookedInterval],
) -> bool:
    """
    True if the candidate interval collides with any booked interval.

    Cancelled bookings must already be filtered out by the caller.
    """
    candidate_end = candidate_start + timedelta(minutes=candidate_duration)
    return any(
        intervals_overlap(candidate_start, candidate_end, b.start, b.end)
        for b in booked
    )


def active_only(booked: Iterable[BookedInterval]) -> List[BookedInterval]:
    return [b for b in booked if not b.cancelled]


def get_available_slots(
    shop_config: ShopAvailabilityConfig,
    day: Date,
    service_duration_minutes: int,
    booked_for_date: Sequence[BookedInterval],
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> AvailabilityResult:
    """
    Open start times for a service on a given date.

    A non-working day short-circuits to an empty result carrying
    CLOSED_MESSAGE. total_slots counts every generated candidate, before the
    closing-time and overlap filters.
    """
    if not shop_config.is_open_on(day):
        return AvailabilityResult(date=day, message=CLOSED_MESSAGE)

    active = active_only(booked_for_date)
    candidates = generate_slots(shop_config.open_time, shop_config.close_time, step_minutes)
    if service_duration_minutes > MAX_DURATION_MINUTES:
        return AvailabilityResult(date=day, total_slots=len(candidates))

    _, close_dt = shop_config.opening_bounds(day)
    duration = timedelta(minutes=service_duration_minutes)

    slots = []
    for candidate in candidates:
        start = datetime.combine(day, parse_hhmm(candidate))
        if start + duration > close_dt:
            continue
        if overlaps(start, service_duration_minutes, active):
            continue
        slots.append(candidate)

    return AvailabilityResult(date=day, slots=slots, total_slots=len(candidates))
