"""
Campsite Availability Sync - Metadata Sync
Refreshes facility and site rows without touching availability. Much faster
than a full sync; run manually or when a park is first added.
"""

from datetime import date
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from collector.fetcher import AvailabilityFetcher, TransientFetchError, MalformedResponseError
from collector.grid_normalizer import normalize_grid
from database.repositories.park_repository import ParkRepository
from models.orm_park import Park
from processor.identity_resolver import IdentityResolver, IdentityWriteError
from utils.logger import setup_logger, log_fetch_error

logger = setup_logger(__name__)


class MetadataSyncService:
    """
    Discovers facilities and sites for parks.

    Facility discovery honors only the park-level allow-list, so facilities
    not yet known locally are picked up here.
    """

    def __init__(self, session: Session, fetcher: AvailabilityFetcher):
        self.session = session
        self.fetcher = fetcher
        self.park_repo = ParkRepository(session)
        self.resolver = IdentityResolver(session)

    def sync_park_metadata(self, park: Park) -> Dict[str, Any]:
        """
        Resolve every facility and site of a park from the current month's grids.

        Args:
            park: Park ORM object

        Returns:
            Dict with facility/site counts and per-record error messages

        Raises:
            TransientFetchError: If the facility list cannot be fetched
            MalformedResponseError: If the facility list is malformed
        """
        park_id = park.park_id
        park_number = park.park_number
        month_start = date.today().replace(day=1)

        facilities = self.fetcher.fetch_park_facilities(
            park_number, self.park_repo.get_facility_filter(park)
        )

        facilities_count = 0
        sites_count = 0
        errors: List[str] = []

        for facility in facilities:
            external_id = facility['facility_id']
            try:
                facility_id = self.resolver.resolve_facility(park_id, external_id, facility['name'])
            except IdentityWriteError as e:
                errors.append(str(e))
                continue
            facilities_count += 1

            try:
                grid = self.fetcher.fetch_facility_grid(park_number, external_id, month_start, nights=1)
                sites = normalize_grid(grid, external_id, facility['name'])
            except (TransientFetchError, MalformedResponseError) as e:
                log_fetch_error(e, park_number, facility_id=external_id, month=month_start.strftime('%Y-%m'))
                errors.append(str(e))
                continue

            for site in sites:
                try:
                    self.resolver.resolve_site(park_id, facility_id, site)
                    sites_count += 1
                except IdentityWriteError as e:
                    errors.append(str(e))

        logger.info(
            f"Metadata sync for {park.name}: {facilities_count} facilities, {sites_count} sites"
        )

        return {
            'park_id': park_id,
            'park': park.name,
            'success': True,
            'facilities': facilities_count,
            'sites': sites_count,
            'errors': errors,
        }

    def sync_all_active_parks(self) -> List[Dict[str, Any]]:
        """
        Sync metadata for every active park. One park's failure never stops the rest.

        Returns:
            One result dict per park
        """
        results = []
        for park in self.park_repo.get_all_active():
            park_id = park.park_id
            park_name = park.name
            try:
                results.append(self.sync_park_metadata(park))
            except Exception as e:
                self.session.rollback()
                logger.error(f"Metadata sync failed for {park_name}: {e}", exc_info=True)
                results.append({
                    'park_id': park_id,
                    'park': park_name,
                    'success': False,
                    'error': str(e),
                })
        return results
