#!/usr/bin/env python3
"""
Sync Metadata Script

Discovers facilities and site metadata for parks without writing availability.
Run manually after adding a park, or occasionally to pick up layout changes.

Usage:
    # Sync all active parks
    python -m scripts.sync_metadata

    # Sync one park by internal ID
    python -m scripts.sync_metadata --park 3

    # Dry run (list the facilities that would be synced)
    python -m scripts.sync_metadata --dry-run
"""

import argparse
import sys
from typing import List, Optional

from collector.fetcher import create_fetcher
from database.connection import get_db_session
from database.repositories.park_repository import ParkRepository
from processor.metadata_sync import MetadataSyncService
from utils.logger import setup_logger

logger = setup_logger(__name__)


def preview_facilities(session, fetcher, park_id: Optional[int] = None) -> List[dict]:
    """
    List facilities the sync would touch, without writing anything.

    Args:
        session: Database session
        fetcher: AvailabilityFetcher
        park_id: Optional park ID (all active parks if None)

    Returns:
        List of {"park": name, "facilities": [...]}
    """
    park_repo = ParkRepository(session)
    parks = [park_repo.get_by_id(park_id)] if park_id else park_repo.get_all_active()

    previews = []
    for park in parks:
        if park is None:
            continue
        facilities = fetcher.fetch_park_facilities(park.park_number, park_repo.get_facility_filter(park))
        previews.append({'park': park.name, 'facilities': facilities})
    return previews


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Sync facility and site metadata from ReserveCalifornia",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--park',
        type=int,
        metavar='ID',
        help='Sync metadata for a specific park (internal park ID)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='List facilities without writing'
    )

    args = parser.parse_args(argv)

    try:
        with get_db_session() as session:
            fetcher = create_fetcher()
            try:
                if args.dry_run:
                    for preview in preview_facilities(session, fetcher, args.park):
                        print(f"{preview['park']}: {len(preview['facilities'])} facilities")
                        for facility in preview['facilities']:
                            print(f"  - {facility['name']} ({facility['facility_id']})")
                    print("\n(Dry run - no changes written)")
                    return 0

                service = MetadataSyncService(session, fetcher)
                if args.park:
                    park = ParkRepository(session).get_by_id(args.park)
                    if park is None:
                        print(f"ERROR: Park {args.park} not found", file=sys.stderr)
                        return 1
                    results = [service.sync_park_metadata(park)]
                else:
                    results = service.sync_all_active_parks()
            finally:
                fetcher.close()

        print("\n=== Metadata Sync Results ===")
        for result in results:
            if result['success']:
                print(f"OK   {result['park']}: {result['facilities']} facilities, {result['sites']} sites")
            else:
                print(f"FAIL {result['park']}: {result['error']}")

        return 0 if all(result['success'] for result in results) else 1

    except Exception as e:
        logger.exception(f"Metadata sync failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
