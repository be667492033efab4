"""
Database connection management for MangroveWatch
PostgreSQL in deployment, SQLite for local runs and tests.
"""

import os
import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import settings
from .models import Base

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    # SQLite keeps one connection so in-memory databases outlive a session
    if make_url(database_url).get_backend_name() == "sqlite":
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    }


def mask_url(database_url: str) -> str:
    """Connection URL with the password hidden, for logs."""
    return make_url(database_url).render_as_string(hide_password=True)


class DatabaseConnection:
    """Engine and session factory for the snapshot store."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.engine = create_engine(
            self.database_url,
            echo=os.getenv("DB_ECHO", "false").lower() == "true",
            **_engine_options(self.database_url)
        )
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

        logger.info(f"Database connection initialized: {mask_url(self.database_url)}")

    def create_tables(self) -> None:
        """Create the kv_store table if it does not exist."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create tables: {e}")
            raise

    def check_connection(self) -> bool:
        """True if a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Session that commits on success and rolls back on a database error.

        Yields:
            SQLAlchemy session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Database connection closed")


_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Shared connection, created from settings on first use."""
    global _db
    if _db is None:
        _db = DatabaseConnection()
    return _db


def init_db(database_url: Optional[str] = None) -> DatabaseConnection:
    """
    Replace the shared connection and make sure the schema exists.

    Args:
        database_url: Optional database URL override

    Returns:
        DatabaseConnection instance
    """
    global _db
    _db = DatabaseConnection(database_url=database_url)
    _db.create_tables()
    return _db
