"""
Database engine, sessions, and maintenance helpers.

SQLite is used locally and PostgreSQL when deployed. Request handlers
commit or roll back explicitly and are never retried; `run_maintenance`
is the retrying wrapper for offline jobs.
"""
import logging
import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger("internarea.database")

Base = declarative_base()

T = TypeVar("T")


def create_app_engine(database_url: Optional[str] = None, busy_timeout_ms: Optional[int] = None):
    """
    Build the engine for `database_url` (default: settings.database_url).

    SQLite connections run in WAL mode with foreign keys enforced. Writers
    wait up to `busy_timeout_ms` for the write lock, which is what
    serialises concurrent posting-gate updates.
    """
    url = database_url or settings.database_url

    if not url.startswith("sqlite"):
        logger.info("Using pooled server database")
        return create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )

    timeout = busy_timeout_ms if busy_timeout_ms is not None else settings.sqlite_busy_timeout_ms
    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        for pragma in ("journal_mode=WAL", f"busy_timeout={int(timeout)}", "foreign_keys=ON"):
            cursor.execute(f"PRAGMA {pragma}")
        cursor.close()

    logger.info("Using SQLite (WAL, busy_timeout=%dms)", timeout)
    return engine


engine = create_app_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_maintenance(job: Callable[[Session], T], attempts: Optional[int] = None) -> T:
    """
    Run `job(session)` in its own transaction, retrying when the database
    is busy or unreachable.

    Each attempt gets a fresh session. Constraint violations and other
    errors are not retried.
    """
    attempts = attempts or settings.db_retry_max_attempts

    for attempt in range(1, attempts + 1):
        db = SessionLocal()
        try:
            result = job(db)
            db.commit()
            return result
        except OperationalError as exc:
            db.rollback()
            if attempt == attempts:
                raise
            delay = settings.db_retry_base_delay * (2 ** (attempt - 1))
            delay += random.uniform(0, delay / 2)
            logger.warning("Maintenance attempt %d/%d failed, retrying in %.2fs: %s",
                           attempt, attempts, delay, exc)
            time.sleep(delay)
        finally:
            db.close()


def init_db():
    """Create missing tables from the models. Use `alembic upgrade head` in production."""
    from . import models  # noqa: F401
    from .auth import models as auth_models  # noqa: F401
    Base.metadata.create_all(bind=engine)
