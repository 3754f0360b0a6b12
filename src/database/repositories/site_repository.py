"""
Campsite Availability Sync - Site Repository
Provides data access layer for the sites table.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from models.orm_site import Site
from models.availability import NormalizedSite
from utils.logger import logger


class SiteRepository:
    """
    Repository for site operations.

    Site identity is (park_id, facility_id, site_number). Writes flush but
    never commit.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, site_id: int) -> Optional[Site]:
        return self.session.get(Site, site_id)

    def find(self, park_id: int, facility_id: Optional[int], site_number: str) -> Optional[Site]:
        """
        Fetch the first site matching the identity key.

        Args:
            park_id: Internal park ID
            facility_id: Internal facility ID (None for unresolved sites)
            site_number: Remote unit ShortName

        Returns:
            Site ORM object with the lowest site_id, or None
        """
        query = self.session.query(Site).filter(
            Site.park_id == park_id,
            Site.site_number == str(site_number)
        )
        if facility_id is None:
            query = query.filter(Site.facility_id.is_(None))
        else:
            query = query.filter(Site.facility_id == facility_id)

        return query.order_by(Site.site_id).first()

    def get_by_facility(self, facility_id: int) -> List[Site]:
        return (
            self.session.query(Site)
            .filter(Site.facility_id == facility_id)
            .order_by(Site.site_number)
            .all()
        )

    def count_by_park(self, park_id: int) -> int:
        return self.session.query(Site).filter(Site.park_id == park_id).count()

    def upsert(self, park_id: int, facility_id: Optional[int], site: NormalizedSite) -> Site:
        """
        Insert a site on first observation, otherwise refresh its metadata.

        Args:
            park_id: Internal park ID
            facility_id: Internal facility ID
            site: Normalized unit from a grid

        Returns:
            Site ORM object with site_id populated
        """
        row = self.find(park_id, facility_id, site.site_number)

        if row is None:
            row = Site(
                park_id=park_id,
                facility_id=facility_id,
                site_number=str(site.site_number),
            )
            self.session.add(row)
            created = True
        else:
            created = False

        row.site_name = site.site_name
        row.site_type = site.site_type
        row.unit_type_id = site.external_unit_type_id
        row.is_ada = bool(site.is_ada)
        row.vehicle_length = int(site.vehicle_length or 0)
        if site.external_site_id:
            row.external_site_id = str(site.external_site_id)

        self.session.flush()

        if created:
            logger.debug(
                f"Created site {row.site_number} (ID: {row.site_id}) "
                f"for park {park_id}, facility {facility_id}"
            )

        return row
