"""
SQLAlchemy ORM Base Configuration
Provides declarative base and session management for ORM models.

IMPORTANT: Engine is taken from database.connection to ensure single source of truth.
"""

from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


# Bound lazily so importing models never opens a database engine
SessionLocal = sessionmaker(
    expire_on_commit=False,  # Allow access to objects after commit
    autoflush=True,
)


def create_session() -> Session:
    """
    Factory for creating sessions outside a request context (cron jobs, scripts).

    Usage:
        session = create_session()
        try:
            # Do work
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    Returns:
        SQLAlchemy Session instance
    """
    if SessionLocal.kw.get('bind') is None:
        from database.connection import db
        SessionLocal.configure(bind=db.get_engine())
    return SessionLocal()
