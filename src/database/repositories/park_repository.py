"""
Campsite Availability Sync - Park Repository
Provides data access layer for the parks table using SQLAlchemy ORM.
"""

from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

try:
    from ...models.orm_park import Park, InvalidFacilityFilterError
    from ...utils.logger import logger, log_database_error
except ImportError:
    from models.orm_park import Park, InvalidFacilityFilterError
    from utils.logger import logger, log_database_error


class ParkRepository:
    """
    Repository for park entity operations.

    Implements:
    - Lookups by internal id and external park number
    - Active park listing for the scheduled sync
    - The park-level facility allow-list
    """

    def __init__(self, session: Session):
        """
        Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy session object
        """
        self.session = session

    def get_by_id(self, park_id: int) -> Optional[Park]:
        """
        Fetch park by ID.

        Args:
            park_id: Park ID

        Returns:
            Park ORM object or None if not found
        """
        return self.session.query(Park).filter(Park.park_id == park_id).first()

    def get_by_park_number(self, park_number: str) -> Optional[Park]:
        """
        Fetch park by ReserveCalifornia PlaceId.

        Args:
            park_number: External park number

        Returns:
            Park ORM object or None if not found
        """
        return self.session.query(Park).filter(Park.park_number == str(park_number)).first()

    def get_all_active(self) -> List[Park]:
        """
        Fetch all active parks ordered by name.

        Returns:
            List of Park ORM objects
        """
        return (
            self.session.query(Park)
            .filter(Park.is_active.is_(True))
            .order_by(Park.name)
            .all()
        )

    def get_by_ids(self, park_ids: List[int]) -> List[Park]:
        """
        Fetch parks by ID, preserving the requested order.

        Unknown ids are silently omitted; callers compare lengths to report them.

        Args:
            park_ids: Park IDs

        Returns:
            List of Park ORM objects
        """
        if not park_ids:
            return []

        parks = self.session.query(Park).filter(Park.park_id.in_(park_ids)).all()
        by_id = {park.park_id: park for park in parks}
        return [by_id[park_id] for park_id in park_ids if park_id in by_id]

    def get_facility_filter(self, park: Park) -> Optional[List[str]]:
        """
        Get the park-level facility allow-list.

        Args:
            park: Park ORM object

        Returns:
            External facility ids to include, or None when the park has no filter

        Raises:
            InvalidFacilityFilterError: If the stored allow-list cannot be parsed
        """
        try:
            return park.allowed_facility_ids
        except InvalidFacilityFilterError as e:
            logger.warning(f"Refusing to sync park {park.park_id} with a broken facility allow-list: {e}")
            raise

    def create(self, park_data: Dict[str, Any]) -> Park:
        """
        Create new park record.

        Args:
            park_data: Dictionary with park fields

        Returns:
            Created Park ORM object

        Raises:
            SQLAlchemyError: If creation fails
        """
        try:
            park = Park(
                name=park_data['name'],
                park_number=str(park_data['park_number']),
                facility_filter=park_data.get('facility_filter'),
                is_active=park_data.get('is_active', True),
            )

            self.session.add(park)
            self.session.flush()  # Get the park_id without committing

            logger.info(f"Created park: {park.name} (ID: {park.park_id})")
            return park

        except Exception as e:
            log_database_error(e, "Failed to create park")
            self.session.rollback()
            raise
