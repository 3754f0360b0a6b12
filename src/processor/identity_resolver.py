"""
Campsite Availability Sync - Identity Resolver
Maps remote facility and site identifiers to durable local ids, creating
rows on first sight and refreshing them in place afterwards.
"""

from typing import Optional
from sqlalchemy.orm import Session

from database.repositories.facility_repository import FacilityRepository
from database.repositories.site_repository import SiteRepository
from models.availability import NormalizedSite
from utils.logger import logger, log_database_error


class IdentityWriteError(Exception):
    """A facility or site row could not be created or updated."""
    pass


class IdentityResolver:
    """
    Resolves (park, external facility id) and (park, facility, site number)
    to local ids. Each resolution commits on its own.
    """

    def __init__(self, session: Session):
        self.session = session
        self.facility_repo = FacilityRepository(session)
        self.site_repo = SiteRepository(session)

    def resolve_facility(self, park_id: int, external_facility_id: str, name: Optional[str]) -> int:
        """
        Get or create the local facility for a remote FacilityId.

        Args:
            park_id: Internal park ID
            external_facility_id: ReserveCalifornia FacilityId
            name: Display name (refreshes the stored name when it changed)

        Returns:
            Local facility_id

        Raises:
            IdentityWriteError: If the row cannot be written
        """
        try:
            facility = self.facility_repo.upsert(park_id, str(external_facility_id), name)
            facility_id = facility.facility_id
            self.session.commit()
            return facility_id
        except Exception as e:
            self.session.rollback()
            log_database_error(e, f"resolve_facility park={park_id} facility={external_facility_id}")
            raise IdentityWriteError(
                f"Failed to resolve facility {external_facility_id} for park {park_id}: {e}"
            ) from e

    def resolve_site(self, park_id: int, facility_id: Optional[int], site: NormalizedSite) -> int:
        """
        Get or create the local site for (park, facility, site number).

        The first matching row wins and has its metadata refreshed; equal
        site numbers in different facilities stay separate.

        Args:
            park_id: Internal park ID
            facility_id: Local facility ID
            site: Normalized unit

        Returns:
            Local site_id

        Raises:
            IdentityWriteError: If the row cannot be written
        """
        try:
            row = self.site_repo.upsert(park_id, facility_id, site)
            site_id = row.site_id
            self.session.commit()
            return site_id
        except Exception as e:
            self.session.rollback()
            logger.warning(
                f"Failed to resolve site {site.site_number} "
                f"(park {park_id}, facility {facility_id}): {e}"
            )
            raise IdentityWriteError(
                f"Failed to resolve site {site.site_number} for park {park_id}, "
                f"facility {facility_id}: {e}"
            ) from e
