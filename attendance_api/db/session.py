from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from attendance_api.core.config import get_settings

_POSTGRES_SCHEMES = ("postgresql://", "postgres://")


def engine_options(database_url: str) -> tuple[str, dict]:
    """Return the driver-qualified URL and connect args for ``database_url``.

    Bare ``postgres`` URLs are pinned to psycopg 3; SQLite connections are
    shared across the threadpool that serves sync endpoints.
    """
    for scheme in _POSTGRES_SCHEMES:
        if database_url.startswith(scheme):
            return "postgresql+psycopg://" + database_url[len(scheme):], {}
    if database_url.startswith("sqlite"):
        return database_url, {"check_same_thread": False}
    return database_url, {}


database_url, connect_args = engine_options(get_settings().database_url)
engine = create_engine(database_url, future=True, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
