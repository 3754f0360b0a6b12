"""
Campsite Availability Sync - Sync Orchestrator

Drives one availability sync over a set of parks:

    for each park:
        start a sync run
        for each month (starting with the current one):
            fetch facility list -> resolve facilities
            fetch each facility grid -> normalize -> merge
        for each merged site:
            resolve site -> reconcile -> detect weekend pairs
        hand the alert batch to the notifier
        finish the sync run

Parks are processed strictly one after another. A failure inside one park is
recorded against that park's run and the next park is still attempted.
"""

import threading
import time
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from collector.fetcher import AvailabilityFetcher, TransientFetchError, MalformedResponseError
from collector.grid_normalizer import normalize_grid
from database.repositories.facility_repository import FacilityRepository
from database.repositories.park_repository import ParkRepository
from database.repositories.run_repository import RunRepository
from models.orm_park import Park
from models.orm_sync_run import SyncStatus
from models.availability import AlertSite, ParkSyncResult, SyncError
from processor.availability_reconciler import AvailabilityReconciler
from processor.identity_resolver import IdentityResolver, IdentityWriteError
from processor.notifier import AvailabilityNotifier
from processor.site_merger import SiteMerger
from processor.weekend_detector import get_weekend_dates
from utils.config import MONTHS_TO_SCRAPE
from utils.logger import logger, log_sync_start, log_sync_complete, log_sync_error, log_fetch_error


class ParkLevelFatalError(Exception):
    """Uncaught failure while processing one park."""
    pass


def month_starts(months: int, today: Optional[date] = None) -> List[date]:
    """
    First day of each month to fetch, starting with the current month.

    Args:
        months: Number of months
        today: Reference date (defaults to today)

    Returns:
        List of month start dates
    """
    first = (today or date.today()).replace(day=1)
    return [first + relativedelta(months=offset) for offset in range(months)]


def month_window(month_start: date) -> Tuple[date, date]:
    """Inclusive (first night, last night) of the month starting at month_start."""
    return month_start, month_start + relativedelta(months=1) - timedelta(days=1)


class AvailabilitySyncService:
    """
    Orchestrates fetch, normalize, merge, resolve, reconcile and alert for parks.

    Usage:
        service = AvailabilitySyncService(session, create_fetcher(), LoggingNotifier())
        results = service.check_now()
    """

    def __init__(
        self,
        session: Session,
        fetcher: AvailabilityFetcher,
        notifier: Optional[AvailabilityNotifier] = None,
        months: int = MONTHS_TO_SCRAPE,
        cancel_event: Optional[threading.Event] = None
    ):
        self.session = session
        self.fetcher = fetcher
        self.notifier = notifier
        self.months = months
        self.cancel_event = cancel_event

        self.park_repo = ParkRepository(session)
        self.facility_repo = FacilityRepository(session)
        self.run_repo = RunRepository(session)
        self.resolver = IdentityResolver(session)
        self.reconciler = AvailabilityReconciler(session)

    def check_now(self, park_ids: Optional[List[int]] = None) -> List[ParkSyncResult]:
        """
        Sync every active park, or the given active parks.

        Args:
            park_ids: Optional park IDs to restrict the pass to

        Returns:
            One ParkSyncResult per park attempted
        """
        if park_ids:
            parks = [park for park in self.park_repo.get_by_ids(park_ids) if park.is_active]
        else:
            parks = self.park_repo.get_all_active()

        log_sync_start(len(parks), self.months)
        start_time = time.time()

        results = []
        for park in parks:
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.warning(
                    f"Sync cancelled; {len(parks) - len(results)} parks not attempted"
                )
                break
            results.append(self.sync_park(park))

        log_sync_complete(
            duration_seconds=round(time.time() - start_time, 2),
            parks_processed=len(results),
            sites_processed=sum(r.sites_processed for r in results),
            weekend_sites=sum(r.weekend_sites for r in results)
        )
        return results

    def sync_park(self, park: Park) -> ParkSyncResult:
        """
        Run one full pass over a park and record it as a sync run.

        Never raises: failures end up on the result and the run record.

        Args:
            park: Park ORM object

        Returns:
            ParkSyncResult
        """
        park_id = park.park_id
        park_name = park.name
        result = ParkSyncResult(park_id=park_id, park_name=park_name, started_at=datetime.now())

        logger.info(f"Syncing {park_name} (park {park_id}, PlaceId {park.park_number})")

        try:
            run = self.run_repo.start_run(park_id)
            result.run_id = run.run_id
            self._process_park(park, result)
        except Exception as e:
            self.session.rollback()
            error = ParkLevelFatalError(f"Sync failed for {park_name} (park {park_id}): {e}")
            log_sync_error(error, park_id)
            result.status = SyncStatus.ERROR.value
            result.error_message = str(error)
            self._finish_run(result)
        else:
            result.status = SyncStatus.SUCCESS.value
            self._finish_run(result)

        result.finished_at = datetime.now()
        logger.info(
            f"Finished {park_name}: {result.sites_processed} sites, "
            f"{result.weekend_sites} with weekends, {len(result.errors)} errors ({result.status})"
        )
        return result

    def effective_facility_filter(self, park: Park) -> Optional[List[str]]:
        """
        Resolve which remote facilities to include for a park.

        Active facility rows, narrowed by the park-level allow-list. A park
        with no facility rows yet falls back to the allow-list alone (None
        means every facility); a park whose facilities are all inactive
        yields an empty list.

        Args:
            park: Park ORM object

        Returns:
            External facility ids to include, or None for no filter
        """
        allow_list = self.park_repo.get_facility_filter(park)
        active_ids = self.facility_repo.get_active_external_ids(park.park_id)

        if active_ids:
            if allow_list is None:
                return active_ids
            allowed = set(allow_list)
            return [facility_id for facility_id in active_ids if facility_id in allowed]

        if self.facility_repo.count_by_park(park.park_id) > 0:
            return []

        return allow_list

    def _process_park(self, park: Park, result: ParkSyncResult) -> None:
        park_id = park.park_id
        park_number = park.park_number

        facility_filter = self.effective_facility_filter(park)
        if facility_filter is not None and not facility_filter:
            logger.info(f"No active facilities for park {park_id}; nothing to sync")
            return

        months = month_starts(self.months)
        merger = SiteMerger(park_id)
        facility_ids: Dict[str, int] = {}
        fetched_months: Dict[str, List[date]] = defaultdict(list)

        for month_start in months:
            month_label = month_start.strftime('%Y-%m')
            logger.debug(f"Checking {month_label} for park {park_id}")

            try:
                facilities = self.fetcher.fetch_park_facilities(park_number, facility_filter)
            except (TransientFetchError, MalformedResponseError) as e:
                log_fetch_error(e, park_number, month=month_label)
                result.errors.append(SyncError('fetch_facilities', f"{park_number}@{month_label}", str(e)))
                continue

            for facility in facilities:
                external_id = facility['facility_id']

                if external_id not in facility_ids:
                    try:
                        facility_ids[external_id] = self.resolver.resolve_facility(
                            park_id, external_id, facility['name']
                        )
                    except IdentityWriteError as e:
                        result.errors.append(SyncError('resolve_facility', f"{park_id}/{external_id}", str(e)))
                        continue

                try:
                    grid = self.fetcher.fetch_facility_grid(park_number, external_id, month_start, nights=1)
                    sites = normalize_grid(grid, external_id, facility['name'])
                except (TransientFetchError, MalformedResponseError) as e:
                    log_fetch_error(e, park_number, facility_id=external_id, month=month_label)
                    result.errors.append(SyncError(
                        'fetch_grid', f"{park_id}/{external_id}@{month_label}", str(e)
                    ))
                    continue

                merger.add_all(sites)
                fetched_months[external_id].append(month_start)

        result.facilities_processed = len(facility_ids)

        # Downgrade only inside months that were actually fetched for a facility
        partial = sorted(
            external_id for external_id in facility_ids if len(fetched_months[external_id]) < len(months)
        )
        if partial:
            logger.warning(
                f"Partial fetch for park {park_id} facilities {partial}; "
                f"downgrading their sites only in the months that were fetched"
            )

        alert_sites = []
        for site in merger.sites():
            key = site.key(park_id)
            facility_id = facility_ids.get(site.external_facility_id)

            try:
                site_id = self.resolver.resolve_site(park_id, facility_id, site)
            except IdentityWriteError as e:
                result.errors.append(SyncError('resolve_site', str(key), str(e)))
                continue

            reconcile_result = self.reconciler.reconcile(
                site_id,
                site.dates,
                key=str(key),
                windows=[month_window(m) for m in fetched_months[site.external_facility_id]]
            )
            result.sites_processed += 1
            result.dates_upserted += reconcile_result.upserted
            result.dates_downgraded += reconcile_result.downgraded
            result.errors.extend(reconcile_result.errors)

            pairs = get_weekend_dates(site.dates)
            if pairs:
                alert_sites.append(AlertSite(
                    site_id=site_id,
                    site_number=site.site_number,
                    site_name=site.site_name,
                    site_type=site.site_type,
                    facility_name=site.facility_name,
                    weekend_dates=pairs
                ))

        result.alert_sites = alert_sites

        if alert_sites and self.notifier is not None:
            try:
                result.notification = self.notifier.send_availability_alerts(
                    park_id, park.name, alert_sites
                )
            except Exception as e:
                logger.error(f"Notifier failed for park {park_id}: {e}", exc_info=True)
                result.errors.append(SyncError('notify', str(park_id), str(e)))

    def _finish_run(self, result: ParkSyncResult) -> None:
        if result.run_id is None:
            return
        try:
            if result.status == SyncStatus.SUCCESS.value:
                self.run_repo.finish_run_success(result.run_id)
            else:
                self.run_repo.finish_run_error(result.run_id, result.error_message or 'Unknown error')
        except Exception as e:
            logger.error(f"Failed to record sync run {result.run_id}: {e}")
            result.errors.append(SyncError('run_record', str(result.run_id), str(e)))
