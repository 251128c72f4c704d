# mission_control/database.py
"""SQLite database engine, session factory and startup seeding using SQLModel."""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlmodel import Session, SQLModel, create_engine

from mission_control.config import DATABASE_URL, SEED_FILE
from mission_control.store import TaskStore

logger = logging.getLogger(__name__)


def _sqlite_file(url: str) -> Optional[Path]:
    """Return the database file for a file-backed SQLite URL, else None."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or parsed.database in (None, "", ":memory:"):
        return None
    return Path(parsed.database)


def _build_engine(url: str):
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    new_engine = create_engine(url, echo=False, connect_args=connect_args)

    if _sqlite_file(url) is not None:
        @event.listens_for(new_engine, "connect")
        def _enable_wal(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return new_engine


engine = _build_engine(DATABASE_URL)


def create_db_and_tables() -> None:
    """Create all tables from SQLModel metadata, then seed an empty board."""
    db_file = _sqlite_file(DATABASE_URL)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seeded = TaskStore(session).seed_from_file(SEED_FILE)
    if seeded:
        logger.info("Seeded %d tasks from %s", seeded, SEED_FILE)


def get_session():
    """Yield a database session for FastAPI dependency injection."""
    with Session(engine) as session:
        yield session
