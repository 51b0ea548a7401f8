#!/usr/bin/env python3

"""
Main entry point for shipment administration from the command line.

Lists, adds, updates and deletes shipment rows in the spreadsheet. Rows are
addressed by the row number shown by `list`; run `list` again after any add or
delete, since those shift the numbers of the rows below.

The core logic is located in the `admin.repository` module.
"""

import argparse
import sys
import os

# Ensure the project root is in the Python path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from admin.repository import AdminRepository
from common.exceptions import ShipTrackError
from common.utils import get_sheets_settings, setup_logging
from sheets.sheets_api_client import SheetsApiClient
from tracking.status_catalog import STATUS_FLOW

STATUS_CHOICES = [status['id'] for status in STATUS_FLOW]


def build_parser():
    parser = argparse.ArgumentParser(description="Shipment admin utility.")
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('list', help='List every shipment with its row number.')

    add_parser = subparsers.add_parser('add', help='Add a new shipment.')
    add_parser.add_argument('tracking_id')
    add_parser.add_argument('from_zip')
    add_parser.add_argument('to_zip')
    add_parser.add_argument('--status', default='INFO_RECEIVED', choices=STATUS_CHOICES)
    add_parser.add_argument('--days', default='')
    add_parser.add_argument('--eta', default='')

    update_parser = subparsers.add_parser('update', help='Update the shipment at a row number.')
    update_parser.add_argument('row_index', type=int)
    update_parser.add_argument('--from-zip', dest='from_zip', default='')
    update_parser.add_argument('--to-zip', dest='to_zip', default='')
    update_parser.add_argument('--status', default='', choices=[''] + STATUS_CHOICES)
    update_parser.add_argument('--days', default='')
    update_parser.add_argument('--eta', default='')

    delete_parser = subparsers.add_parser('delete', help='Delete the shipment at a row number.')
    delete_parser.add_argument('row_index', type=int)
    delete_parser.add_argument('--yes', action='store_true', help='Delete without asking for confirmation.')
    return parser


def print_shipments(shipments):
    if not shipments:
        print("INFO: No shipments found.")
        return
    print(f"{'ROW':>4}  {'TRACKING ID':<16} {'FROM':<8} {'TO':<8} {'STATUS':<20} {'DAYS':<5} LAST UPDATE")
    for shipment in shipments:
        print(f"{shipment['row_index']:>4}  {shipment['tracking_id']:<16} {shipment['from_zip']:<8} "
              f"{shipment['to_zip']:<8} {shipment['status']:<20} {shipment['days']:<5} {shipment['last_update']}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging('shipment_admin')
    repository = AdminRepository(SheetsApiClient.from_settings(get_sheets_settings()))

    try:
        if args.command == 'list':
            print_shipments(repository.list_shipments())

        elif args.command == 'add':
            record = repository.create_shipment(vars(args))
            print(f"SUCCESS: Shipment {record['tracking_id']} added (ETA {record['eta']}).")

        elif args.command == 'update':
            outcome = repository.update_shipment(args.row_index, vars(args))
            print(f"SUCCESS: Shipment at row {args.row_index} {outcome}.")

        elif args.command == 'delete':
            shipment = repository.get_shipment(args.row_index)
            if not args.yes:
                confirm = input(f"Are you sure you want to delete shipment {shipment['tracking_id']}? (yes/no): ")
                if confirm.lower() != 'yes':
                    print("INFO: Delete cancelled.")
                    return 0
            repository.delete_shipment(args.row_index)
            print(f"SUCCESS: Shipment {shipment['tracking_id']} deleted.")

    except ShipTrackError as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
