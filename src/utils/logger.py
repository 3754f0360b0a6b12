"""
Campsite Availability Sync - Structured Logging
Provides JSON-formatted logging for log aggregation queries.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

try:
    from .config import LOG_LEVEL, config
except ImportError:
    from utils.config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Park sync completed", extra={
        ...     "park_id": 12,
        ...     "sites_processed": 340,
        ...     "weekend_sites": 7
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.hasHandlers():
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('campsite_sync')


def log_sync_start(park_count: int, months: int):
    """Log the start of an availability sync invocation."""
    logger.info("Availability sync started", extra={
        "event_type": "sync_start",
        "park_count": park_count,
        "months": months,
        "environment": config.environment
    })


def log_sync_complete(duration_seconds: float, parks_processed: int, sites_processed: int,
                      weekend_sites: int):
    """Log successful sync completion."""
    logger.info("Availability sync completed", extra={
        "event_type": "sync_complete",
        "duration_seconds": duration_seconds,
        "parks_processed": parks_processed,
        "sites_processed": sites_processed,
        "weekend_sites": weekend_sites
    })


def log_sync_error(error: Exception, park_id: Optional[int] = None):
    """Log a park-level sync failure with context."""
    logger.error("Park sync failed", extra={
        "event_type": "sync_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "park_id": park_id
    }, exc_info=True)


def log_fetch_error(error: Exception, park_number: str, facility_id: Optional[str] = None,
                    month: Optional[str] = None):
    """Log a failed facility/month fetch."""
    logger.warning("Availability fetch failed", extra={
        "event_type": "fetch_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "park_number": park_number,
        "facility_id": facility_id,
        "month": month
    })


def log_database_error(error: Exception, query_context: Optional[str] = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)
