"""
Campsite Availability Sync - Sync Entity Models
Plain dataclasses passed between the fetch, merge, reconcile and alert stages.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class SiteKey:
    """
    Composite identity of a remote site.

    The site number alone is not unique within a park; the same number
    can appear in several facilities.
    """
    park_id: int
    external_facility_id: str
    site_number: str

    def __str__(self) -> str:
        return f"{self.park_id}/{self.external_facility_id}/{self.site_number}"


@dataclass
class NormalizedSite:
    """
    One unit from a facility grid, flattened to a date -> available map.
    """
    site_number: str
    external_facility_id: str
    site_name: Optional[str] = None
    facility_name: Optional[str] = None
    external_site_id: Optional[str] = None
    external_unit_type_id: Optional[int] = None
    site_type: Optional[str] = None
    is_ada: bool = False
    vehicle_length: int = 0
    dates: Dict[date, bool] = field(default_factory=dict)

    @property
    def available_dates(self) -> List[date]:
        """Sorted dates reported free."""
        return sorted(d for d, available in self.dates.items() if available is True)

    def key(self, park_id: int) -> SiteKey:
        return SiteKey(park_id, self.external_facility_id, self.site_number)


@dataclass(frozen=True)
class WeekendPair:
    """A Friday and the following Saturday, both available."""
    friday: date
    saturday: date

    def to_dict(self) -> dict:
        return {
            "fri": self.friday.isoformat(),
            "sat": self.saturday.isoformat(),
        }


@dataclass
class AlertSite:
    """
    Site handed to the notifier because it has at least one weekend pair.
    """
    site_id: int
    site_number: str
    site_name: Optional[str]
    site_type: Optional[str]
    facility_name: Optional[str]
    weekend_dates: List[WeekendPair]

    def to_dict(self) -> dict:
        """
        Convert alert site to dictionary for notification payloads.

        Returns:
            Dictionary representation of the site and its weekend pairs
        """
        return {
            "site_id": self.site_id,
            "site_number": self.site_number,
            "site_name": self.site_name,
            "site_type": self.site_type,
            "facility_name": self.facility_name,
            "weekend_dates": [pair.to_dict() for pair in self.weekend_dates],
        }


@dataclass
class SyncError:
    """
    A per-record failure collected during a pass.

    Attributes:
        stage: Pipeline stage that failed (fetch, resolve_facility, resolve_site, reconcile, notify)
        key: Human-readable identity of the failed record
        message: Error text
    """
    stage: str
    key: str
    message: str


@dataclass
class ReconcileResult:
    upserted: int = 0
    downgraded: int = 0
    errors: List[SyncError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class NotificationResult:
    sent: int = 0
    failed: int = 0


@dataclass
class ParkSyncResult:
    """
    Outcome of one orchestrator pass over one park.
    """
    park_id: int
    park_name: str
    run_id: Optional[int] = None
    status: str = "pending"
    facilities_processed: int = 0
    sites_processed: int = 0
    dates_upserted: int = 0
    dates_downgraded: int = 0
    alert_sites: List[AlertSite] = field(default_factory=list)
    notification: Optional[NotificationResult] = None
    errors: List[SyncError] = field(default_factory=list)
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def weekend_sites(self) -> int:
        return len(self.alert_sites)

    def to_dict(self) -> dict:
        return {
            "park_id": self.park_id,
            "park_name": self.park_name,
            "run_id": self.run_id,
            "status": self.status,
            "facilities_processed": self.facilities_processed,
            "sites_processed": self.sites_processed,
            "dates_upserted": self.dates_upserted,
            "dates_downgraded": self.dates_downgraded,
            "weekend_sites": self.weekend_sites,
            "errors": len(self.errors),
            "error_message": self.error_message,
        }
