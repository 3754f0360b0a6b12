"""
Campsite Availability Sync - Notifier Boundary
The hand-off point to the notification subsystem. Email composition and
delivery live outside this package.
"""

from abc import ABC, abstractmethod
from typing import List

from models.availability import AlertSite, NotificationResult
from utils.logger import logger


class AvailabilityNotifier(ABC):
    """Receives per-park batches of sites with weekend availability."""

    @abstractmethod
    def send_availability_alerts(
        self,
        park_id: int,
        park_name: str,
        sites: List[AlertSite]
    ) -> NotificationResult:
        """
        Deliver one park's alert batch.

        Args:
            park_id: Internal park ID
            park_name: Park display name
            sites: Sites with at least one weekend pair

        Returns:
            NotificationResult with sent/failed counts
        """


class LoggingNotifier(AvailabilityNotifier):
    """Logs the batch and reports every site as sent."""

    def send_availability_alerts(
        self,
        park_id: int,
        park_name: str,
        sites: List[AlertSite]
    ) -> NotificationResult:
        weekend_count = sum(len(site.weekend_dates) for site in sites)
        logger.info(
            f"Weekend availability at {park_name}: {len(sites)} sites, {weekend_count} weekends",
            extra={
                "event_type": "availability_alert",
                "park_id": park_id,
                "park_name": park_name,
                "site_count": len(sites),
                "sites": [site.to_dict() for site in sites],
            }
        )
        return NotificationResult(sent=len(sites), failed=0)
