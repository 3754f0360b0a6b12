"""
Campsite Availability Sync - Availability Fetcher Contract
Defines the fetcher interface shared by the direct HTTP and browser channels,
the fetch error types, and channel selection.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from utils.config import FETCH_MODE, PREFER_BROWSER_SCRAPER, ConfigurationError
from utils.logger import logger


class TransientFetchError(Exception):
    """Network failure, timeout or non-2xx response. Retried with backoff."""
    pass


class MalformedResponseError(Exception):
    """Response was not JSON or lacked expected keys. Not retried."""
    pass


class AvailabilityFetcher(ABC):
    """
    Read-only access to ReserveCalifornia facility lists and availability grids.

    Implementations must be idempotent and side-effect-free beyond the read.
    """

    channel = "abstract"

    @abstractmethod
    def fetch_park_facilities(
        self,
        park_number: str,
        facility_filter: Optional[Iterable[str]] = None
    ) -> List[Dict[str, str]]:
        """
        Fetch the facilities of a park.

        Args:
            park_number: ReserveCalifornia PlaceId
            facility_filter: Optional allow-list of external facility ids

        Returns:
            List of {"facility_id": str, "name": str}

        Raises:
            TransientFetchError: After retries are exhausted
            MalformedResponseError: If the response is not a facility list
        """

    @abstractmethod
    def fetch_facility_grid(
        self,
        park_number: str,
        facility_id: str,
        start_date: Union[date, str],
        nights: int = 1
    ) -> Dict[str, Any]:
        """
        Fetch the raw availability grid for one facility.

        Args:
            park_number: ReserveCalifornia PlaceId
            facility_id: ReserveCalifornia FacilityId
            start_date: First night of the window
            nights: Night count passed to the grid search

        Returns:
            Raw grid envelope with a top-level Facility.Units collection

        Raises:
            TransientFetchError: After retries are exhausted
            MalformedResponseError: If the grid has no Facility.Units
        """

    def close(self):
        """Release any held resources."""
        pass


def filter_facilities(
    raw_facilities: Any,
    park_number: str,
    facility_filter: Optional[Iterable[str]] = None
) -> List[Dict[str, str]]:
    """
    Reduce a raw facility list to the requested park and allow-list.

    Entries whose PlaceId is present and differs from the park number are
    dropped, as are entries missing a FacilityId.

    Args:
        raw_facilities: Decoded facility-list JSON
        park_number: ReserveCalifornia PlaceId
        facility_filter: Optional allow-list of external facility ids

    Returns:
        List of {"facility_id": str, "name": str}

    Raises:
        MalformedResponseError: If raw_facilities is not a list
    """
    if not isinstance(raw_facilities, list):
        raise MalformedResponseError(
            f"Facility list for park {park_number} is {type(raw_facilities).__name__}, expected list"
        )

    allowed = None
    if facility_filter is not None:
        allowed = {str(facility_id) for facility_id in facility_filter}

    facilities = []
    for entry in raw_facilities:
        if not isinstance(entry, dict):
            continue

        facility_id = entry.get('FacilityId')
        if facility_id is None or str(facility_id) == '':
            continue

        place_id = entry.get('PlaceId')
        if place_id is not None and str(place_id) != str(park_number):
            continue

        facility_id = str(facility_id)
        if allowed is not None and facility_id not in allowed:
            continue

        facilities.append({
            'facility_id': facility_id,
            'name': entry.get('Name') or f"Facility {facility_id}",
        })

    return facilities


def require_grid_units(grid: Any, facility_id: str) -> Dict[str, Any]:
    """
    Validate that a grid envelope carries Facility.Units.

    Raises:
        MalformedResponseError: If the envelope is missing Facility.Units
    """
    if not isinstance(grid, dict):
        raise MalformedResponseError(f"Grid for facility {facility_id} is not a JSON object")

    facility = grid.get('Facility')
    if not isinstance(facility, dict) or 'Units' not in facility:
        raise MalformedResponseError(f"Grid for facility {facility_id} has no Facility.Units")

    return grid


def create_fetcher(user_agent: Optional[str] = None, mode: Optional[str] = None) -> AvailabilityFetcher:
    """
    Build the fetcher for this process.

    The channel is chosen once here; callers never branch per request.

    Args:
        user_agent: Optional User-Agent override for the direct channel
        mode: 'auto', 'direct' or 'browser' (defaults to FETCH_MODE)

    Returns:
        AvailabilityFetcher implementation

    Raises:
        ConfigurationError: If the mode is unknown, or 'browser' is forced
            while node or the scraper script is missing
    """
    from collector.browser_client import BrowserScraperClient
    from collector.reserve_california_client import ReserveCaliforniaClient

    mode = (mode or FETCH_MODE or 'auto').strip().lower()

    if mode == 'direct':
        fetcher = ReserveCaliforniaClient(user_agent=user_agent)
    elif mode == 'browser':
        if not BrowserScraperClient.is_available():
            raise ConfigurationError(
                "FETCH_MODE=browser but the browser scraper is unavailable. "
                "Install Node.js (or set NODE_PATH) and check BROWSER_SCRAPER_SCRIPT."
            )
        fetcher = BrowserScraperClient()
    elif mode == 'auto':
        if PREFER_BROWSER_SCRAPER and BrowserScraperClient.is_available():
            fetcher = BrowserScraperClient()
        else:
            fetcher = ReserveCaliforniaClient(user_agent=user_agent)
    else:
        raise ConfigurationError(f"Unknown FETCH_MODE '{mode}'. Use auto, direct or browser.")

    logger.info(f"Using {fetcher.channel} availability fetcher")
    return fetcher
