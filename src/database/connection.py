"""
Campsite Availability Sync - Database Connection Management
Provides SQLAlchemy connection pooling and ORM session management for MySQL.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.pool import QueuePool
from sqlalchemy.engine import Engine, URL
from sqlalchemy.orm import Session
from typing import Generator, Optional

try:
    from ..utils.config import (
        DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
        DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
        config
    )
    from ..utils.logger import logger, log_database_error
except ImportError:
    from utils.config import (
        DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
        DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
        config
    )
    from utils.logger import logger, log_database_error


class DatabaseConnection:
    """
    Manages MySQL database connections with connection pooling.

    Features:
    - Connection pooling (5 connections + 10 overflow)
    - Automatic connection recycling (every hour)
    - Health checks before connection use (pool_pre_ping)
    """

    def __init__(self):
        self._engine: Optional[Engine] = None

    def get_engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine with connection pooling.

        Returns:
            SQLAlchemy Engine instance

        Raises:
            DatabaseConnectionError: If engine creation fails
        """
        if self._engine is None:
            try:
                # URL.create keeps the password out of log output
                connection_url = URL.create(
                    drivername="mysql+pymysql",
                    username=DB_USER,
                    password=DB_PASSWORD,
                    host=DB_HOST,
                    port=DB_PORT,
                    database=DB_NAME,
                    query={"charset": "utf8mb4"},
                )

                self._engine = create_engine(
                    connection_url,
                    poolclass=QueuePool,
                    pool_size=DB_POOL_SIZE,
                    max_overflow=DB_POOL_MAX_OVERFLOW,
                    pool_recycle=DB_POOL_RECYCLE,
                    pool_pre_ping=DB_POOL_PRE_PING,
                    echo=False,
                    hide_parameters=True,
                )

                logger.info("Database connection pool initialized", extra={
                    "host": DB_HOST,
                    "database": DB_NAME,
                    "pool_size": DB_POOL_SIZE,
                    "max_overflow": DB_POOL_MAX_OVERFLOW,
                    "environment": config.environment
                })

            except Exception as e:
                log_database_error(e, "Failed to create database engine")
                raise DatabaseConnectionError(f"Failed to create database engine: {e}")

        return self._engine

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.get_engine().connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error("Database connection test failed", extra={
                "error": str(e)
            })
            return False

    def close(self):
        """Close all connections in the pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection pool closed")


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


# Global database connection instance
db = DatabaseConnection()


def test_database_connection() -> bool:
    """
    Test database connectivity.

    Returns:
        True if connection successful, False otherwise
    """
    return db.test_connection()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for ORM database sessions.

    Sessions are committed on success or rolled back on error. Repositories
    used by the sync engine commit per upsert, so the final commit here only
    flushes whatever bookkeeping is left.

    Yields:
        SQLAlchemy Session object

    Example:
        >>> from database.repositories.park_repository import ParkRepository
        >>> with get_db_session() as session:
        ...     parks = ParkRepository(session).get_all_active()
    """
    from models.base import create_session

    session = create_session()

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        log_database_error(e, "ORM transaction failed, rolled back")
        raise
    finally:
        session.close()
