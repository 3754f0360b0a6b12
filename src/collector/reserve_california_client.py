"""
Campsite Availability Sync - ReserveCalifornia API Client
Fetches facility lists and availability grids from the UseDirect RDR API
with retry logic using tenacity.
"""

import requests
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from collector.fetcher import (
    AvailabilityFetcher, TransientFetchError, MalformedResponseError,
    filter_facilities, require_grid_units
)
from utils.config import (
    RC_BASE_URL, RDR_BASE_URL, RC_USER_AGENT, RC_CONNECT_TIMEOUT, RC_TIMEOUT,
    MAX_RETRY_ATTEMPTS, RETRY_BACKOFF_MULTIPLIER, RETRY_BACKOFF_MAX
)
from utils.logger import logger


class ReserveCaliforniaClient(AvailabilityFetcher):
    """
    Client for the ReserveCalifornia (UseDirect RDR) API with automatic retry logic.

    Implements capped exponential backoff for transient failures
    (network errors, timeouts, non-2xx responses).
    """

    channel = "direct"

    def __init__(
        self,
        base_url: str = RDR_BASE_URL,
        user_agent: Optional[str] = None,
        connect_timeout: float = RC_CONNECT_TIMEOUT,
        timeout: float = RC_TIMEOUT
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = (connect_timeout, timeout)
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': user_agent or RC_USER_AGENT,
            'Accept': 'application/json',
            'Origin': RC_BASE_URL.rstrip('/'),
            'Referer': RC_BASE_URL.rstrip('/') + '/'
        })

    def fetch_park_facilities(
        self,
        park_number: str,
        facility_filter: Optional[Iterable[str]] = None
    ) -> List[Dict[str, str]]:
        """
        Fetch the facilities of a park from /fd/facilities.

        Args:
            park_number: ReserveCalifornia PlaceId
            facility_filter: Optional allow-list of external facility ids

        Returns:
            List of {"facility_id": str, "name": str}

        Raises:
            TransientFetchError: If the API is unreachable (after retries)
            MalformedResponseError: If the body is not a JSON facility list
        """
        url = f"{self.base_url}/fd/facilities"
        logger.debug(f"Fetching facilities for park {park_number} from {url}")

        data = self._request('GET', url, params={'PlaceId': park_number})
        facilities = filter_facilities(data, park_number, facility_filter)

        logger.info(f"Fetched {len(facilities)} facilities for park {park_number}")
        return facilities

    def fetch_facility_grid(
        self,
        park_number: str,
        facility_id: str,
        start_date: Union[date, str],
        nights: int = 1
    ) -> Dict[str, Any]:
        """
        Fetch the availability grid for one facility from /search/grid.

        Args:
            park_number: ReserveCalifornia PlaceId
            facility_id: ReserveCalifornia FacilityId
            start_date: First night of the window
            nights: Night count for the grid search

        Returns:
            Raw grid envelope with Facility.Units

        Raises:
            TransientFetchError: If the API is unreachable (after retries)
            MalformedResponseError: If the body lacks Facility.Units
        """
        if isinstance(start_date, date):
            start_date = start_date.isoformat()

        payload = {
            'PlaceId': int(park_number),
            'FacilityId': int(facility_id),
            'StartDate': start_date,
            'Nights': int(nights),
            'InSeasonOnly': False,
            'WebOnly': True,
            'UnitCategoryId': 0,
            'UnitTypeGroupId': 0,
            'SleepingUnitId': 0,
        }

        url = f"{self.base_url}/search/grid"
        logger.debug(f"Fetching grid for park {park_number} facility {facility_id} from {start_date}")

        data = self._request('POST', url, json=payload)
        return require_grid_units(data, facility_id)

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, max=RETRY_BACKOFF_MAX),
        retry=retry_if_exception_type(TransientFetchError),
        reraise=True
    )
    def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Perform one HTTP request and decode the JSON body.

        Raises:
            TransientFetchError: On timeout, connection failure or non-2xx status
            MalformedResponseError: If the body is not valid JSON
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise TransientFetchError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransientFetchError(f"{method} {url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{method} {url} returned invalid JSON: {e}") from e

    def close(self):
        """Close the HTTP session."""
        self.session.close()
