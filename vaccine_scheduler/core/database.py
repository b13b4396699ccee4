from contextlib import contextmanager
from typing import Generator
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings
from .errors import DuplicateKey, StorageUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine whose transactions are safe for concurrent sessions.

    SQLite gets ``BEGIN IMMEDIATE`` transactions so that every unit of work
    takes the write lock up front and concurrent writers queue on the busy
    timeout instead of deadlocking on a lock upgrade.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.DB_LOCK_TIMEOUT,
            },
            pool_pre_ping=True,
        )

        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_connection, connection_record):
            # Hand transaction control to the "begin" hook below
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_LOCK_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = build_engine(settings.get_database_url)

SessionLocal = build_session_factory(engine)


@contextmanager
def storage_errors() -> Generator[None, None, None]:
    """Translate driver-level failures into the scheduler error taxonomy."""
    try:
        yield
    except IntegrityError as exc:
        logger.warning(f"Integrity violation: {exc.orig}")
        raise DuplicateKey("Record already exists!") from exc
    except DBAPIError as exc:
        logger.error(f"Storage failure: {exc}")
        raise StorageUnavailable() from exc


# Session factory dependency
def get_session_factory() -> sessionmaker:
    """Get the session factory used by the services."""
    return SessionLocal


# Database initialization
def init_db(bind: Engine = None):
    """Initialize database tables."""
    from .. import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
