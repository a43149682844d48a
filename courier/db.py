"""SQLAlchemy engine, session helpers and schema bootstrap.

The engine is built once from ``settings.DATABASE_URL``. PostgreSQL (via
``psycopg``) is the deployment target; SQLite is supported for tests and
local runs, with foreign keys switched on for every connection.
"""

import logging
import sqlite3
import time
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from . import settings

logger = logging.getLogger("courier.db")


def make_engine(url: str = settings.DATABASE_URL) -> Engine:
    if url.startswith("sqlite"):
        # Reference lookups run on worker threads.
        return create_engine(url, pool_pre_ping=True, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_size=settings.DB_POOL_SIZE)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def get_session():
    """Context manager that yields a SQLAlchemy session.

    The session is closed when exiting the context; committing is left to
    the caller.

    Yields:
        Session: Active SQLAlchemy session.
    """
    with SessionLocal() as s:
        yield s


def wait_for_db(timeout: float = settings.DB_STARTUP_TIMEOUT) -> None:
    """Block until the database accepts connections or ``timeout`` elapses."""
    deadline = time.time() + timeout
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except Exception:
            if time.time() > deadline:
                logger.error("database not reachable", extra={"timeout": timeout})
                raise
            time.sleep(1)


def check_db() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        return True
    except Exception:
        logger.exception("database health check failed")
        return False


def init_db() -> None:
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401  registers the mappers

    Base.metadata.create_all(engine)
