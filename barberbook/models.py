# barberbook/models.py

import uuid
from typing import Optional, List
from datetime import datetime

from sqlalchemy import DateTime, Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"

SLOT_INDEX = "uq_shop_active_start"
_active_only = text("status != 'cancelled'")


def _new_id() -> str:
    return str(uuid.uuid4())


class Shop(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5, 6], sa_column=Column(JSON))
    open_time: str = "09:00"
    close_time: str = "18:00"


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # two live appointments can never share a start time in the same shop
        Index(
            SLOT_INDEX,
            "shop_id",
            "starts_at",
            unique=True,
            sqlite_where=_active_only,
            postgresql_where=_active_only,
        ),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)

    shop_id: str = Field(index=True, foreign_key="shop.id")
    # wall-clock local time, stored naive
    starts_at: datetime = Field(sa_column=Column(DateTime, index=True, nullable=False))
    duration_minutes: int
    ends_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    status: str = STATUS_PENDING

    customer_name: str
    customer_phone: str
    service_name: str
    price: float = 0.0
    professional_id: Optional[str] = None
    client_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))


class NotificationLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    shop_id: str = Field(index=True)
    appointment_id: Optional[str] = None
    type: str  # "confirmation"
    channel: str  # "whatsapp" or "email"
    recipient: str
    status: str  # "sent" or "failed"
    error: Optional[str] = None
    message_snippet: str = ""
    sent_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))
