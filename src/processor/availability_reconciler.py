"""
Campsite Availability Sync - Availability Reconciler

Brings stored availability for one site in line with the latest merged
observation.

The remote feed only reports what it currently knows and never signals a
removal, so a date that was available in storage but is missing from the
new observation's available set must be downgraded explicitly.

Two phases:
    1. Upsert every observed date with its boolean (one transaction each)
    2. Read back dates stored as available inside the fetched window(s)
       and downgrade any that the observation did not report free
"""

from datetime import date
from typing import Dict, Optional, Sequence, Tuple
from sqlalchemy.orm import Session

from database.repositories.availability_repository import AvailabilityRepository
from models.availability import ReconcileResult, SyncError
from utils.logger import logger


class AvailabilityReconciler:
    """
    Reconciles one site's stored availability against an observation.

    Usage:
        reconciler = AvailabilityReconciler(session)
        result = reconciler.reconcile(site_id, {date(2025, 11, 7): True})
    """

    def __init__(self, session: Session):
        self.session = session
        self.availability_repo = AvailabilityRepository(session)

    def reconcile(
        self,
        site_id: int,
        dates: Dict[date, bool],
        window: Optional[Tuple[date, date]] = None,
        downgrade: bool = True,
        key: Optional[str] = None,
        windows: Optional[Sequence[Tuple[date, date]]] = None
    ) -> ReconcileResult:
        """
        Upsert observed dates and downgrade stale available dates.

        Args:
            site_id: Local site ID
            dates: Observed date -> available map
            window: Inclusive (start, end) for the downgrade phase
            downgrade: False skips phase 2
            key: Identity used in error records (defaults to "site:<id>")
            windows: Several inclusive (start, end) ranges, e.g. the months
                that were actually fetched. Without window or windows the
                downgrade covers (min(dates), max(dates)).

        Returns:
            ReconcileResult with upserted/downgraded counts and per-date errors
        """
        result = ReconcileResult()
        key = key or f"site:{site_id}"

        for night in sorted(dates):
            try:
                self.availability_repo.upsert_availability(site_id, night, dates[night] is True)
                self.session.commit()
                result.upserted += 1
            except Exception as e:
                self.session.rollback()
                logger.warning(f"Failed to upsert availability for {key} on {night}: {e}")
                result.errors.append(SyncError(
                    stage='reconcile',
                    key=f"{key}@{night.isoformat()}",
                    message=str(e)
                ))

        if not downgrade:
            return result

        if window is not None:
            windows = [window]
        elif windows is None:
            windows = [(min(dates), max(dates))] if dates else []
        if not windows:
            return result

        observed_available = {night for night, available in dates.items() if available is True}

        try:
            stale = set()
            for start, end in windows:
                stored_available = self.availability_repo.get_available_dates(site_id, start, end)
                stale.update(night for night in stored_available if night not in observed_available)
            if stale:
                result.downgraded = self.availability_repo.mark_unavailable(site_id, sorted(stale))
                self.session.commit()
                logger.debug(f"Downgraded {result.downgraded} stale dates for {key}")
        except Exception as e:
            self.session.rollback()
            logger.warning(f"Failed to downgrade stale availability for {key}: {e}")
            result.errors.append(SyncError(stage='downgrade', key=key, message=str(e)))

        return result
