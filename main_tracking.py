#!/usr/bin/env python3

"""
Main entry point for a command-line tracking lookup.

This script looks up one tracking number through the same cache-backed lookup
the web API uses and prints the delivery progress for the newest record.

The core logic is located in the `tracking.lookup` and `tracking.summary`
modules.
"""

import argparse
import sys
import os

# Ensure the project root is in the Python path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from common.exceptions import FetchError
from common.utils import get_sheets_settings, setup_logging
from sheets.sheets_api_client import SheetsApiClient
from tracking.cache import ShipmentCache
from tracking.lookup import TrackingLookup
from tracking.summary import build_tracking_summary


def print_summary(summary):
    shipment = summary['shipment']
    print(f"\n--- Package Details: {shipment['tracking_id']} ---")
    print(f"Status:        {summary['status']['label']}")
    print(f"From ZIP:      {shipment['from_zip'] or 'N/A'}")
    print(f"To ZIP:        {shipment['to_zip'] or 'N/A'}")
    print(f"Last Updated:  {shipment['last_update']}")
    print(f"Progress:      {summary['progress_percent']:.0f}%")

    eta = summary['eta']
    if eta['kind'] == 'delivered':
        print(f"Delivered:     {eta['eta'] or 'Not available'}")
    elif eta['kind'] == 'today':
        print("Delivery:      Today (out for delivery)")
    else:
        print(f"Estimated:     {eta['eta'] or 'Not available'} ({eta['days']} day transit)")

    for milestone in summary['milestones']:
        marker = '[x]' if milestone['completed'] else '[ ]'
        current = '  <- current' if milestone['active'] else ''
        print(f"  {marker} {milestone['label']}{current}")

    if summary['multiple_records']:
        print(f"\nINFO: Found {summary['total_results']} tracking records. Showing the most recent update.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Look up a shipment by tracking number.")
    parser.add_argument('tracking_id', help="The tracking number to look up.")
    parser.add_argument('--refresh', action='store_true', help="Ignore any cached data.")
    args = parser.parse_args(argv)

    setup_logging('tracking_lookup')
    settings = get_sheets_settings()
    lookup = TrackingLookup(SheetsApiClient.from_settings(settings), ShipmentCache(settings['cache_ttl_seconds']))

    try:
        if args.refresh:
            lookup.force_refresh()
        records = lookup.search(args.tracking_id)
    except FetchError as e:
        print(f"ERROR: Could not reach the tracking system: {e}")
        return 1

    summary = build_tracking_summary(records)
    if summary is None:
        print(f"Tracking number not found: {args.tracking_id.strip().upper()}")
        return 2

    print_summary(summary)
    return 0


if __name__ == '__main__':
    sys.exit(main())
