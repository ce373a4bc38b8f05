# barberbook/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, date as Date
from typing import List, Optional

from barberbook.core import MAX_DURATION_MINUTES, BookingRequest

HHMM_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class ShopAvailability(BaseModel):
    working_days: list[int]     # 0=Sun, 1=Mon....
    open_time: str = Field(pattern=HHMM_PATTERN)
    close_time: str = Field(pattern=HHMM_PATTERN)


class ShopCreate(BaseModel):
    name: str = Field(min_length=1)
    availability: Optional[ShopAvailability] = None


class ShopPublic(BaseModel):
    id: str
    name: str
    working_days: list[int]
    open_time: str
    close_time: str


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


class ServiceItem(BaseModel):
    name: str = Field(min_length=1)
    duration_minutes: int = Field(default=30, gt=0, le=MAX_DURATION_MINUTES)
    price: float = Field(default=0.0, ge=0)


class BookingCreate(BaseModel):
    # Required fields are optional here so absence is reported as MISSING_FIELDS
    shop_id: Optional[str] = None
    date: Optional[Date] = None
    time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    customer_name: Optional[str] = Field(default=None, min_length=2)
    customer_phone: Optional[str] = Field(default=None, min_length=10)
    service_name: Optional[str] = None
    services: List[ServiceItem] = Field(default_factory=list)
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=MAX_DURATION_MINUTES)
    price: Optional[float] = Field(default=None, ge=0)
    professional_id: Optional[str] = None
    client_id: Optional[str] = None

    def to_request(self, default_duration: int) -> BookingRequest:
        service_name = self.service_name
        duration = self.duration_minutes
        price = self.price

        # combo booking: one contiguous block covering every service
        if self.services:
            service_name = service_name or " + ".join(s.name for s in self.services)
            if duration is None:
                duration = sum(s.duration_minutes for s in self.services)
            if price is None:
                price = sum(s.price for s in self.services)

        return BookingRequest(
            shop_id=self.shop_id,
            date=self.date,
            start=self.time,
            duration_minutes=duration or default_duration,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            service_name=service_name,
            price=price or 0.0,
            professional_id=self.professional_id,
            client_id=self.client_id,
        )


class AdmissionResponse(BaseModel):
    id: str
    status: AppointmentStatus
    message: str = "Appointment created"


class AppointmentPublic(BaseModel):
    id: str
    shop_id: str
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    customer_name: str
    customer_phone: str
    service_name: str
    price: float
    professional_id: Optional[str] = None


class AvailabilityMeta(BaseModel):
    date: Date
    total_slots: int
    available: int
    message: Optional[str] = None


class AvailabilityResponse(BaseModel):
    slots: List[str]
    meta: AvailabilityMeta
