"""
Database connection and session management for DoseTrack
Dose log, schedules and inventory all live in one SQLAlchemy database
"""

import logging
from contextlib import contextmanager
from typing import Dict, Generator

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import settings


logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create the engine for a database URL

    SQLite gets a single shared connection (so in-memory databases survive
    across sessions) and foreign keys switched on.
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True
    )


engine = build_engine(settings.DATABASE_URL, settings.DATABASE_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session for FastAPI routes; closed after the response
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for scripts and background work.
    Commits on success, rolls back on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create every table registered on Base"""
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


def drop_db() -> None:
    """
    Drop all tables.
    WARNING: This deletes every dose log entry and inventory record!
    """
    import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")


def reset_db() -> None:
    """Drop and recreate all tables"""
    drop_db()
    init_db()
    logger.info("Database reset complete")


class DatabaseHealthCheck:
    """Database health check utilities"""

    @staticmethod
    def is_connected() -> bool:
        try:
            with engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError:
            logger.exception("Database connectivity check failed")
            return False

    @staticmethod
    def get_table_counts() -> Dict[str, int]:
        """Row counts for every mapped table"""
        counts = {}
        with get_db_context() as db:
            for table in Base.metadata.sorted_tables:
                counts[table.name] = db.execute(select(func.count()).select_from(table)).scalar()
        return counts


__all__ = [
    "engine",
    "build_engine",
    "SessionLocal",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "drop_db",
    "reset_db",
    "DatabaseHealthCheck"
]
