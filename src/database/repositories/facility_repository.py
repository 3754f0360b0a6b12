"""
Campsite Availability Sync - Facility Repository
Provides data access layer for the facilities table.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from models.orm_facility import Facility
from utils.logger import logger


class FacilityRepository:
    """
    Repository for facility (campground area) operations.

    Writes flush but never commit; transaction boundaries belong to the caller.
    """

    def __init__(self, session: Session):
        """
        Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy session object
        """
        self.session = session

    def get_by_id(self, facility_id: int) -> Optional[Facility]:
        return self.session.get(Facility, facility_id)

    def get_by_external_id(self, park_id: int, external_facility_id: str) -> Optional[Facility]:
        """
        Fetch the first facility matching a park and remote FacilityId.

        Args:
            park_id: Internal park ID
            external_facility_id: ReserveCalifornia FacilityId

        Returns:
            Facility ORM object or None if not found
        """
        return (
            self.session.query(Facility)
            .filter(
                Facility.park_id == park_id,
                Facility.external_facility_id == str(external_facility_id)
            )
            .order_by(Facility.facility_id)
            .first()
        )

    def get_by_park(self, park_id: int, active_only: bool = False) -> List[Facility]:
        query = self.session.query(Facility).filter(Facility.park_id == park_id)
        if active_only:
            query = query.filter(Facility.is_active.is_(True))
        return query.order_by(Facility.name).all()

    def get_active_external_ids(self, park_id: int) -> List[str]:
        """
        Get remote FacilityIds of the park's active facilities.

        Args:
            park_id: Internal park ID

        Returns:
            List of external facility ids (may be empty)
        """
        rows = (
            self.session.query(Facility.external_facility_id)
            .filter(Facility.park_id == park_id, Facility.is_active.is_(True))
            .all()
        )
        return [row[0] for row in rows]

    def count_by_park(self, park_id: int) -> int:
        return self.session.query(Facility).filter(Facility.park_id == park_id).count()

    def upsert(self, park_id: int, external_facility_id: str, name: str) -> Facility:
        """
        Insert a facility on first sight, otherwise refresh its name.

        Args:
            park_id: Internal park ID
            external_facility_id: ReserveCalifornia FacilityId
            name: Display name from the facility list

        Returns:
            Facility ORM object with facility_id populated
        """
        facility = self.get_by_external_id(park_id, external_facility_id)

        if facility is None:
            facility = Facility(
                park_id=park_id,
                external_facility_id=str(external_facility_id),
                name=name or f"Facility {external_facility_id}",
                is_active=True,
            )
            self.session.add(facility)
            self.session.flush()
            logger.info(
                f"Created facility: {facility.name} "
                f"(ID: {facility.facility_id}, external: {external_facility_id})"
            )
        elif name and facility.name != name:
            facility.name = name
            self.session.flush()

        return facility
