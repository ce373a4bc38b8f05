# barberbook/db.py

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from barberbook.config import get_settings


def build_engine(database_url: str, echo: bool = False):
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI threadpool
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.sql_echo)


def init_db(bind=None) -> None:
    # import so the tables register on SQLModel.metadata
    from barberbook import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
