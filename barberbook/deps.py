# barberbook/deps.py

from fastapi import BackgroundTasks, Depends
from sqlmodel import Session

from barberbook.admission import AdmissionLocks, BookingAdmissionController
from barberbook.config import Settings, get_settings
from barberbook.db import engine, get_session
from barberbook.notifications import NotificationDispatcher, build_dispatcher
from barberbook.repository import SqlAppointmentStore, SqlShopStore

admission_locks = AdmissionLocks()


def _new_session() -> Session:
    return Session(engine)


def get_dispatcher(settings: Settings = Depends(get_settings)) -> NotificationDispatcher:
    return build_dispatcher(settings, session_factory=_new_session)


def get_admission_controller(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> BookingAdmissionController:
    return BookingAdmissionController(
        shops=SqlShopStore(session),
        appointments=SqlAppointmentStore(session),
        notifier=dispatcher,
        defer=background_tasks.add_task,
        locks=admission_locks if settings.serialize_admissions else None,
    )
