"""
Campsite Availability Sync - pytest Configuration and Fixtures

Provides shared test fixtures for:
- In-memory SQLite database session with every table created
- Sample parks and facilities
- A scripted fake fetcher and grid builders
"""

import sys
from pathlib import Path
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import Mock

# Add src to path for imports
backend_src = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(backend_src.absolute()))

from models import Base, Park, Facility  # noqa: E402
from collector.fetcher import AvailabilityFetcher, TransientFetchError  # noqa: E402


# ============================================================================
# Grid Builders
# ============================================================================

def make_slice(night: date, free: bool = True, blocked: bool = False, reservation_id: int = 0) -> dict:
    return {
        'Date': night.isoformat(),
        'IsFree': free,
        'IsBlocked': blocked,
        'ReservationId': reservation_id,
    }


def make_unit(
    short_name: str,
    dates: Dict[date, bool],
    name: Optional[str] = None,
    unit_type_id: int = 1,
    is_ada: bool = False,
    vehicle_length: int = 0
) -> dict:
    """
    Build one grid unit whose slices reproduce the given availability.

    Unavailable nights are rendered as reserved slices.
    """
    return {
        'Name': name or f"Site {short_name}",
        'ShortName': short_name,
        'UnitTypeId': unit_type_id,
        'IsAda': is_ada,
        'VehicleLength': vehicle_length,
        'Slices': {
            night.isoformat(): make_slice(night, free=available, reservation_id=0 if available else 99)
            for night, available in dates.items()
        },
    }


def make_grid(units: Dict[str, dict]) -> dict:
    """Wrap units (keyed by UnitId) in a grid envelope."""
    return {'Facility': {'Units': units}}


def month_dates(month_start: date, available: bool = True, days: Optional[int] = None) -> Dict[date, bool]:
    """Every night of a month (or the first `days` nights) with one availability value."""
    result = {}
    night = month_start
    while night.month == month_start.month and (days is None or len(result) < days):
        result[night] = available
        night += timedelta(days=1)
    return result


class FakeFetcher(AvailabilityFetcher):
    """
    Scripted fetcher.

    facilities: list of {"facility_id", "name"[, "PlaceId"]} returned for every month
    grids: {(facility_id, month_start): grid or Exception}
    """

    channel = "fake"

    def __init__(self, facilities: List[dict], grids: Dict[Tuple[str, date], object]):
        self.facilities = facilities
        self.grids = grids
        self.facility_calls: List[Tuple[str, Optional[list]]] = []
        self.grid_calls: List[Tuple[str, str, date]] = []
        self.closed = False

    def fetch_park_facilities(self, park_number, facility_filter=None):
        self.facility_calls.append((park_number, list(facility_filter) if facility_filter is not None else None))
        allowed = None if facility_filter is None else {str(f) for f in facility_filter}
        return [
            {'facility_id': str(f['facility_id']), 'name': f['name']}
            for f in self.facilities
            if allowed is None or str(f['facility_id']) in allowed
        ]

    def fetch_facility_grid(self, park_number, facility_id, start_date, nights=1):
        self.grid_calls.append((park_number, facility_id, start_date))
        grid = self.grids.get((str(facility_id), start_date), make_grid({}))
        if isinstance(grid, Exception):
            raise grid
        return grid

    def close(self):
        self.closed = True


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_engine():
    """
    In-memory SQLite engine with every ORM table created.

    StaticPool keeps one connection so the in-memory database survives
    across sessions.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """
    SQLAlchemy session bound to the in-memory engine.

    Returns:
        Session (closed after the test)
    """
    SessionFactory = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = SessionFactory()
    yield session
    session.close()


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_park_data():
    """
    Sample park dictionary for testing.

    Returns:
        Dictionary with park data matching parks table schema
    """
    return {
        'name': 'Chino Hills SP',
        'park_number': '627',
        'facility_filter': None,
        'is_active': True,
    }


@pytest.fixture
def sample_park(db_session, sample_park_data):
    """Chino Hills with no facility rows yet."""
    park = Park(**sample_park_data)
    db_session.add(park)
    db_session.commit()
    return park


@pytest.fixture
def sample_facilities(db_session, sample_park):
    """Two active facilities for the sample park."""
    facilities = [
        Facility(park_id=sample_park.park_id, external_facility_id='674', name='Rolling M. Ranch Campground'),
        Facility(park_id=sample_park.park_id, external_facility_id='675', name='Upper Aliso Group Camp'),
    ]
    db_session.add_all(facilities)
    db_session.commit()
    return facilities


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_fetcher():
    """
    Mock AvailabilityFetcher for tests that only check call wiring.

    Returns:
        Mock with the fetcher interface, returning no facilities
    """
    fetcher = Mock(spec=AvailabilityFetcher)
    fetcher.fetch_park_facilities.return_value = []
    fetcher.fetch_facility_grid.return_value = make_grid({})
    return fetcher


@pytest.fixture
def failing_fetcher():
    """Mock fetcher whose facility list always fails."""
    fetcher = Mock(spec=AvailabilityFetcher)
    fetcher.fetch_park_facilities.side_effect = TransientFetchError("HTTP 503")
    return fetcher
