# barbershop/db.py

import logging
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings
from .errors import Unavailable

logger = logging.getLogger(__name__)


def make_engine(database_url: str, timeout: float = settings.db_timeout_seconds):
    """Build an engine whose every call to the database is bounded by ``timeout`` seconds."""
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,  # required for SQLite + FastAPI
            "timeout": timeout,          # busy timeout while another writer holds the lock
        }
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, echo=False, connect_args=connect_args)

    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": int(timeout),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args=connect_args,
    )


engine = make_engine(settings.database_url)


def create_db_and_tables(bind=None):
    # Registers the table classes on SQLModel.metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def storage_guard(session: Session, operation: str):
    """Translate driver failures and timeouts into ``Unavailable``."""
    try:
        yield session
    except (OperationalError, PoolTimeoutError) as exc:
        session.rollback()
        logger.error("Storage failure during %s: %s", operation, exc)
        raise Unavailable(f"Storage unavailable during {operation}, try again later") from exc
