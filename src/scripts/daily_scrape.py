#!/usr/bin/env python3
"""
Campsite Availability Sync - Daily Scrape Script
Checks availability for all active parks (or the given parks), reconciles
stored availability and reports weekend openings.

This script should be run once a day via cron or similar scheduler.

Usage:
    python -m scripts.daily_scrape
    python -m scripts.daily_scrape --months 3 --parks 1,4 --verbose
    python -m scripts.daily_scrape --dry-run

Cron example (6 AM daily):
    0 6 * * * cd /path/to/campsite-sync/src && python -m scripts.daily_scrape

Exit codes:
    0 - Scrape completed (per-park failures are recorded on sync_runs)
    1 - No parks to scrape, or a fatal error
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

# Add src to path
src_root = Path(__file__).parent.parent
sys.path.insert(0, str(src_root.absolute()))

from utils.config import MONTHS_TO_SCRAPE
from utils.logger import logger
from collector.fetcher import create_fetcher
from database.connection import get_db_session
from database.repositories.park_repository import ParkRepository
from database.repositories.settings_repository import SettingsRepository
from models.availability import ParkSyncResult
from processor.availability_sync import AvailabilitySyncService
from processor.notifier import LoggingNotifier


def parse_park_ids(value: str) -> List[int]:
    """argparse type for a comma-separated list of park IDs."""
    try:
        return [int(part) for part in value.split(',') if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid park list '{value}'. Use e.g. 1,2,3")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Scrape campsite availability for active parks',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--months',
        type=int,
        default=MONTHS_TO_SCRAPE,
        help=f'Number of months to scrape (default: {MONTHS_TO_SCRAPE})'
    )
    parser.add_argument(
        '--parks',
        type=parse_park_ids,
        metavar='ID,ID',
        help='Comma-separated list of park IDs (default: all active)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be scraped without scraping'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Show detailed output'
    )
    return parser


class DailyScrape:
    """
    Runs one scheduled availability scrape.
    """

    def __init__(self, months: int, park_ids: Optional[List[int]] = None, dry_run: bool = False):
        self.months = months
        self.park_ids = park_ids
        self.dry_run = dry_run
        self.cancel_event = threading.Event()

    def run(self) -> int:
        """
        Execute the scrape.

        Returns:
            Process exit code
        """
        logger.info("=" * 60)
        logger.info(f"DAILY SCRAPE - months={self.months}")
        logger.info("=" * 60)

        with get_db_session() as session:
            parks = self._select_parks(ParkRepository(session))

            if not parks:
                logger.warning("No active parks found to scrape")
                return 1

            logger.info(f"Found {len(parks)} park(s) to scrape:")
            for park in parks:
                logger.info(f"  - {park.name} (ID: {park.park_id})")

            if self.dry_run:
                logger.info(f"DRY RUN: Would scrape {len(parks)} parks for {self.months} months")
                return 0

            fetcher = create_fetcher(user_agent=self._load_user_agent(session))
            try:
                service = AvailabilitySyncService(
                    session,
                    fetcher,
                    notifier=LoggingNotifier(),
                    months=self.months,
                    cancel_event=self.cancel_event
                )
                results = service.check_now([park.park_id for park in parks])
            finally:
                fetcher.close()

        self._print_summary(results)
        return 0

    def cancel(self, signum=None, frame=None):
        """Stop after the park currently in progress."""
        logger.warning(f"Received signal {signum}; stopping after the current park")
        self.cancel_event.set()

    def _select_parks(self, park_repo: ParkRepository):
        if not self.park_ids:
            return park_repo.get_all_active()

        found = {park.park_id: park for park in park_repo.get_by_ids(self.park_ids)}
        parks = []
        for park_id in self.park_ids:
            park = found.get(park_id)
            if park is not None and park.is_active:
                parks.append(park)
            else:
                logger.warning(f"Park ID {park_id} not found or inactive")
        return parks

    def _load_user_agent(self, session) -> Optional[str]:
        try:
            return SettingsRepository(session).get_user_agent()
        except Exception as e:
            session.rollback()
            logger.warning(f"Could not read user agent setting, using default: {e}")
            return None

    def _print_summary(self, results: List[ParkSyncResult]):
        succeeded = [r for r in results if r.status == 'success']
        failed = [r for r in results if r.status != 'success']

        logger.info("=" * 60)
        logger.info("SCRAPE SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Parks processed:  {len(results)}")
        logger.info(f"Parks succeeded:  {len(succeeded)}")
        logger.info(f"Parks failed:     {len(failed)}")
        logger.info(f"Sites processed:  {sum(r.sites_processed for r in results)}")
        logger.info(f"Weekend sites:    {sum(r.weekend_sites for r in results)}")
        logger.info(f"Dates downgraded: {sum(r.dates_downgraded for r in results)}")
        logger.info(f"Record errors:    {sum(len(r.errors) for r in results)}")
        for result in failed:
            logger.error(f"  {result.park_name}: {result.error_message}")
        logger.info("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)

    scrape = DailyScrape(months=args.months, park_ids=args.parks, dry_run=args.dry_run)
    signal.signal(signal.SIGTERM, scrape.cancel)

    try:
        return scrape.run()
    except Exception as e:
        logger.exception(f"Daily scrape failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
