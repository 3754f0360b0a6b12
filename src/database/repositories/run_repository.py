"""
Campsite Availability Sync - Run Repository
Records one sync_runs row per orchestrator pass over a park.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from models.orm_sync_run import SyncRun, SyncStatus
from utils.logger import logger, log_database_error


class RunRepository:
    """
    Repository for sync run bookkeeping.

    Each write commits immediately so run records survive a rollback of
    the work they describe.
    """

    def __init__(self, session: Session):
        self.session = session

    def start_run(self, park_id: int) -> SyncRun:
        """
        Create a pending run for a park.

        Args:
            park_id: Internal park ID

        Returns:
            SyncRun ORM object with run_id populated
        """
        try:
            run = SyncRun(
                park_id=park_id,
                started_at=datetime.now(),
                status=SyncStatus.PENDING,
            )
            self.session.add(run)
            self.session.commit()
            return run
        except Exception as e:
            log_database_error(e, f"Failed to start sync run for park {park_id}")
            self.session.rollback()
            raise

    def finish_run_success(self, run_id: int) -> None:
        self._finish(run_id, SyncStatus.SUCCESS, None)

    def finish_run_error(self, run_id: int, error_message: str) -> None:
        self._finish(run_id, SyncStatus.ERROR, error_message)

    def get_by_id(self, run_id: int) -> Optional[SyncRun]:
        return self.session.get(SyncRun, run_id)

    def get_recent_for_park(self, park_id: int, limit: int = 10) -> List[SyncRun]:
        return (
            self.session.query(SyncRun)
            .filter(SyncRun.park_id == park_id)
            .order_by(SyncRun.started_at.desc(), SyncRun.run_id.desc())
            .limit(limit)
            .all()
        )

    def _finish(self, run_id: int, status: SyncStatus, error_message: Optional[str]) -> None:
        try:
            run = self.session.get(SyncRun, run_id)
            if run is None:
                logger.warning(f"Sync run {run_id} not found; cannot mark {status.value}")
                return

            run.status = status
            run.finished_at = datetime.now()
            run.error_message = error_message
            self.session.commit()
        except Exception as e:
            log_database_error(e, f"Failed to finish sync run {run_id}")
            self.session.rollback()
            raise
