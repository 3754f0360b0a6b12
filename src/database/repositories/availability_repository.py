"""
Campsite Availability Sync - Availability Repository
=====================================================

Provides data access layer for the site_availability table.

Rows are written with a single-statement upsert keyed by (site_id,
availability_date). MySQL uses INSERT ... ON DUPLICATE KEY UPDATE; SQLite
(unit tests) uses INSERT ... ON CONFLICT DO UPDATE.
"""

from typing import Dict, Iterable, List
from datetime import date

from sqlalchemy.orm import Session
from sqlalchemy import select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from models.orm_availability import SiteAvailability


class AvailabilityRepository:
    """
    Repository for per-night site availability.

    Primary functions:
    - Upsert one (site, date) observation
    - Read back the dates currently stored as available in a window
    - Downgrade stale available dates
    """

    def __init__(self, session: Session):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy Session object
        """
        self.session = session

    def upsert_availability(self, site_id: int, availability_date: date, is_available: bool) -> None:
        """
        Insert or update one night's availability.

        Writing the same value twice leaves the row unchanged.

        Args:
            site_id: Internal site ID
            availability_date: Night of stay
            is_available: Whether the night is bookable
        """
        values = dict(
            site_id=site_id,
            availability_date=availability_date,
            is_available=bool(is_available),
        )

        if self._dialect_name() == 'mysql':
            stmt = mysql_insert(SiteAvailability).values(**values)
            stmt = stmt.on_duplicate_key_update(
                is_available=stmt.inserted.is_available
            )
        else:
            stmt = sqlite_insert(SiteAvailability).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=['site_id', 'availability_date'],
                set_={'is_available': stmt.excluded.is_available}
            )

        self.session.execute(stmt)

    def get_available_dates(self, site_id: int, start_date: date, end_date: date) -> List[date]:
        """
        Get dates stored as available for a site within an inclusive window.

        Args:
            site_id: Internal site ID
            start_date: First night of the window
            end_date: Last night of the window

        Returns:
            Sorted list of available dates
        """
        stmt = (
            select(SiteAvailability.availability_date)
            .where(
                SiteAvailability.site_id == site_id,
                SiteAvailability.is_available.is_(True),
                SiteAvailability.availability_date >= start_date,
                SiteAvailability.availability_date <= end_date,
            )
            .order_by(SiteAvailability.availability_date)
        )
        return list(self.session.execute(stmt).scalars().all())

    def mark_unavailable(self, site_id: int, dates: Iterable[date]) -> int:
        """
        Downgrade the given nights to unavailable.

        Args:
            site_id: Internal site ID
            dates: Nights to downgrade

        Returns:
            Number of rows changed
        """
        dates = list(dates)
        if not dates:
            return 0

        stmt = (
            update(SiteAvailability)
            .where(
                SiteAvailability.site_id == site_id,
                SiteAvailability.availability_date.in_(dates),
                SiteAvailability.is_available.is_(True),
            )
            .values(is_available=False)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return result.rowcount or 0

    def get_site_dates(self, site_id: int) -> Dict[date, bool]:
        """
        Get every stored night for a site.

        Args:
            site_id: Internal site ID

        Returns:
            Dictionary mapping date to is_available
        """
        stmt = (
            select(SiteAvailability.availability_date, SiteAvailability.is_available)
            .where(SiteAvailability.site_id == site_id)
            .order_by(SiteAvailability.availability_date)
        )
        return {row[0]: bool(row[1]) for row in self.session.execute(stmt).all()}

    def count_for_site(self, site_id: int) -> int:
        stmt = select(SiteAvailability.availability_id).where(SiteAvailability.site_id == site_id)
        return len(self.session.execute(stmt).all())

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name
