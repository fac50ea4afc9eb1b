from __future__ import annotations

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from chore_calendar.config import SETTINGS

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    if url in _MEMORY_URLS:
        # One shared connection, otherwise every session sees an empty database.
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


def create_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False)


engine = create_db_engine(SETTINGS.database_url)
SessionLocal = create_session_factory(engine)
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    with bind.connect() as connection:
        connection.execute(text("SELECT 1"))
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
