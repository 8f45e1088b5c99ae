"""Database package: engine, session factory, init_db(), get_session()."""

import threading
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from stock_count.config import DATABASE_URL
from stock_count.db.base import Base

# Import all models so Base.metadata has all tables
from stock_count.db.models import (  # noqa: F401
    Branch,
    InventoryRecord,
    MonthlyReport,
    Movement,
    Product,
)

_init_lock = threading.Lock()
_engine = None
_SessionLocal: sessionmaker | None = None


def _get_engine():
    """Create engine with check_same_thread=False for use from executor threads."""
    url = DATABASE_URL
    if url.startswith("sqlite"):
        if "?" in url:
            url += "&check_same_thread=False"
        else:
            url += "?check_same_thread=False"
    engine = create_engine(url, echo=False)
    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db() -> None:
    """Create engine and tables (idempotent)."""
    global _engine, _SessionLocal
    with _init_lock:
        if _SessionLocal is not None:
            return
        _engine = _get_engine()
        Base.metadata.create_all(bind=_engine)
        _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False)


def seed_database() -> bool:
    """Seed branches and products from data/*.csv when the catalog is empty. Returns True if seeded."""
    from stock_count.db.seed_data import seed_mock_data

    with get_session() as session:
        if session.scalars(select(Branch.id).limit(1)).first() is not None:
            return False
        seed_mock_data(session)
        return True


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Context manager yielding a DB session. Calls init_db() on first use.

    Everything done inside one ``with`` block is a single transaction:
    committed on exit, rolled back if the block raises.
    """
    init_db()
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
