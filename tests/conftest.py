"""
Shared fixtures: an in-memory database, a TestClient wired to it, and
in-memory fakes for the admission controller's stores.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from barberbook.config import Settings, get_settings
from barberbook.core import BookedInterval, BookingRequest, ShopAvailabilityConfig
from barberbook.db import build_engine, get_session, init_db
from barberbook.deps import get_dispatcher
from barberbook.errors import ShopNotFoundError
from barberbook.main import app
from barberbook.notifications import DeliveryResult, NotificationDispatcher

MONDAY = date(2024, 11, 25)
SUNDAY = date(2024, 11, 24)


class RecordingProvider:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict[str, str]] = []

    def send(self, to, message, channel):
        self.sent.append({"to": to, "message": message, "channel": channel})
        if self.fail:
            raise RuntimeError("provider down")
        return DeliveryResult(success=True)


class FakeShopStore:
    def __init__(self, configs: Dict[str, ShopAvailabilityConfig]):
        self.configs = configs

    def get_availability(self, shop_id):
        if shop_id not in self.configs:
            raise ShopNotFoundError(shop_id)
        return self.configs[shop_id]


class FakeAppointmentStore:
    """Keeps appointments in a list; counts reads so tests can assert on I/O."""

    def __init__(self):
        self.rows: List[dict] = []
        self.reads = 0
        self.fail_reads = None
        self.fail_writes = None

    def add(self, shop_id, start: datetime, duration=30, cancelled=False):
        self.rows.append(
            {"id": f"appt-{len(self.rows) + 1}", "shop_id": shop_id, "start": start,
             "duration": duration, "cancelled": cancelled}
        )

    def list_active_for_day(self, shop_id, day):
        self.reads += 1
        if self.fail_reads:
            raise self.fail_reads
        return [
            BookedInterval(start=r["start"], duration_minutes=r["duration"])
            for r in self.rows
            if r["shop_id"] == shop_id and r["start"].date() == day and not r["cancelled"]
        ]

    def create(self, request: BookingRequest) -> str:
        if self.fail_writes:
            raise self.fail_writes
        self.add(request.shop_id, request.starts_at, request.duration_minutes)
        return self.rows[-1]["id"]

    def active_intervals(self, shop_id, day):
        return [
            (r["start"], r["start"] + timedelta(minutes=r["duration"]))
            for r in self.rows
            if r["shop_id"] == shop_id and r["start"].date() == day and not r["cancelled"]
        ]


@pytest.fixture
def shop_config():
    return ShopAvailabilityConfig(
        working_days=frozenset({1, 2, 3, 4, 5, 6}),
        open_time="09:00",
        close_time="18:00",
    )


@pytest.fixture
def shop_store(shop_config):
    return FakeShopStore({"shop-1": shop_config})


@pytest.fixture
def appointment_store():
    return FakeAppointmentStore()


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def settings():
    return Settings(use_mock_notifications=True, serialize_admissions=False)


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def client(engine, settings, provider):
    def _get_session():
        with Session(engine) as session:
            yield session

    dispatcher = NotificationDispatcher(
        providers={"whatsapp": provider},
        session_factory=lambda: Session(engine),
    )

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def shop_id(client):
    response = client.post(
        "/shops",
        json={
            "name": "Fade Factory",
            "availability": {
                "working_days": [1, 2, 3, 4, 5, 6],
                "open_time": "09:00",
                "close_time": "18:00",
            },
        },
    )
    assert response.status_code == 201
    return response.json()["id"]
