# Campsite Availability Sync - Models Package

# Import all ORM models to register them with SQLAlchemy's declarative base
# This ensures string-based relationship() forward references can be resolved
# IMPORTANT: Use relative imports to avoid duplicate module loading issues
from .base import Base, SessionLocal, create_session
from .orm_park import Park, InvalidFacilityFilterError
from .orm_facility import Facility
from .orm_site import Site
from .orm_availability import SiteAvailability
from .orm_sync_run import SyncRun, SyncStatus
from .orm_setting import Setting
from .availability import (
    SiteKey, NormalizedSite, WeekendPair, AlertSite, SyncError,
    ReconcileResult, NotificationResult, ParkSyncResult
)

__all__ = [
    'Base',
    'SessionLocal',
    'create_session',
    'Park',
    'InvalidFacilityFilterError',
    'Facility',
    'Site',
    'SiteAvailability',
    'SyncRun',
    'SyncStatus',
    'Setting',
    'SiteKey',
    'NormalizedSite',
    'WeekendPair',
    'AlertSite',
    'SyncError',
    'ReconcileResult',
    'NotificationResult',
    'ParkSyncResult',
]
