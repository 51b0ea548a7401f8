#!/usr/bin/env python3

"""
Main entry point for the background refresh scheduler.

Runs two jobs on one `schedule` loop: the public lookup cache refresh and the
admin listing poll, each every REFRESH_INTERVAL_SECONDS (30 by default). The
cache is warmed once at startup.
"""

import time
import sys
import os

# Add project root to the Python path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

import schedule

from admin.repository import AdminRepository
from common.exceptions import FetchError
from common.utils import get_sheets_settings, setup_logging
from sheets.sheets_api_client import SheetsApiClient
from tracking.cache import ShipmentCache
from tracking.lookup import TrackingLookup
from tracking.refresh_scheduler import build_refresh_tickers


def main():
    """
    Master scheduler: keeps the shipment data fresh until interrupted.
    """
    print("=============================================")
    print("===      STARTING REFRESH SCHEDULER       ===")
    print("=============================================")

    logger = setup_logging('refresh_scheduler')
    settings = get_sheets_settings()
    client = SheetsApiClient.from_settings(settings)
    cache = ShipmentCache(settings['cache_ttl_seconds'])
    lookup = TrackingLookup(client, cache)
    repository = AdminRepository(client, cache)

    try:
        lookup.prefetch()
    except FetchError as e:
        logger.error(f"Initial prefetch failed, the scheduler will retry: {e}")

    scheduler = schedule.Scheduler()
    for ticker in build_refresh_tickers(lookup, repository, settings, scheduler=scheduler):
        ticker.start()

    try:
        while True:
            scheduler.run_pending()
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n--- Refresh scheduler stopped. ---")


if __name__ == '__main__':
    main()
