import os
import sys
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from admin.repository import AdminRepository
from common.exceptions import FetchError, RemoteWriteError, ShipmentNotFoundError, ValidationError
from tracking.cache import ShipmentCache

NOW = datetime(2024, 1, 5, 12, 0, 0, tzinfo=timezone.utc)

# --- Test Data ---
SHEET_ROWS = [
    ["TRK1", "10001", "90210", "PICKED_UP", "3", "2024-01-08T00:00:00Z", "2024-01-05T00:00:00Z"],
    ["TRK2", "20002", "30303", "IN_TRANSIT", "5", "2024-01-09T00:00:00Z", "2024-01-04T00:00:00Z"],
]


class TestAdminRepository(unittest.TestCase):

    def setUp(self):
        """Set up a mocked spreadsheet client and a shared cache for each test."""
        self.client = MagicMock()
        self.client.fetch_rows.return_value = SHEET_ROWS
        self.cache = ShipmentCache()
        self.repository = AdminRepository(self.client, self.cache, clock=lambda: NOW)

    # --- Listing ---

    def test_list_assigns_one_based_row_indexes(self):
        shipments = self.repository.list_shipments()

        self.assertEqual([(s['row_index'], s['tracking_id']) for s in shipments], [(1, 'TRK1'), (2, 'TRK2')])
        self.assertEqual(self.cache.snapshot(), shipments)

    def test_list_numbers_rows_after_dropping_blank_ones(self):
        self.client.fetch_rows.return_value = [SHEET_ROWS[0], [], ["", "1", "2"], SHEET_ROWS[1]]

        shipments = self.repository.list_shipments()

        self.assertEqual([(s['row_index'], s['tracking_id']) for s in shipments], [(1, 'TRK1'), (2, 'TRK2')])

    def test_list_failure_keeps_previous_state(self):
        self.repository.list_shipments()
        self.client.fetch_rows.side_effect = FetchError("API Error: 500")

        with self.assertRaises(FetchError):
            self.repository.list_shipments()
        self.assertEqual(len(self.repository.shipments), 2)
        self.assertEqual(len(self.cache), 2)

    # --- Create ---

    def test_create_defaults_days_and_eta(self):
        record = self.repository.create_shipment(
            {'tracking_id': 'X', 'from_zip': 'A', 'to_zip': 'B', 'status': 'INFO_RECEIVED'}
        )

        expected_row = ['X', 'A', 'B', 'INFO_RECEIVED', '3', '2024-01-08T12:00:00Z', '2024-01-05T12:00:00Z']
        self.client.append_rows.assert_called_once_with([expected_row])
        self.assertEqual(record['days'], '3')
        # The mandatory reload after the write.
        self.client.fetch_rows.assert_called_once()

    def test_create_uses_supplied_days_for_eta(self):
        self.repository.create_shipment(
            {'tracking_id': 'X', 'from_zip': 'A', 'to_zip': 'B', 'status': 'PICKED_UP', 'days': 1}
        )
        row = self.client.append_rows.call_args[0][0][0]
        self.assertEqual(row[4], '1')
        self.assertEqual(row[5], '2024-01-06T12:00:00Z')

    def test_create_keeps_supplied_eta(self):
        self.repository.create_shipment(
            {'tracking_id': 'X', 'from_zip': 'A', 'to_zip': 'B', 'status': 'PICKED_UP', 'eta': '2024-02-01T09:00'}
        )
        row = self.client.append_rows.call_args[0][0][0]
        self.assertEqual(row[5], '2024-02-01T09:00')

    def test_create_requires_fields(self):
        with self.assertRaises(ValidationError):
            self.repository.create_shipment({'tracking_id': 'X', 'from_zip': ' ', 'to_zip': 'B'})
        self.client.append_rows.assert_not_called()

    def test_create_rejects_bad_days(self):
        for days in ('abc', '999999999', '-1', '2.5'):
            with self.assertRaises(ValidationError):
                self.repository.create_shipment(
                    {'tracking_id': 'X', 'from_zip': 'A', 'to_zip': 'B', 'status': 'INFO_RECEIVED', 'days': days}
                )
        self.client.append_rows.assert_not_called()
        self.client.fetch_rows.assert_not_called()

    def test_create_rejected_does_not_reload(self):
        self.client.append_rows.side_effect = RemoteWriteError("Failed to append rows: HTTP 500", status_code=500)

        with self.assertRaises(RemoteWriteError):
            self.repository.create_shipment(
                {'tracking_id': 'X', 'from_zip': 'A', 'to_zip': 'B', 'status': 'INFO_RECEIVED'}
            )
        self.client.fetch_rows.assert_not_called()

    # --- Update ---

    def test_update_patches_merged_row(self):
        self.repository.list_shipments()

        outcome = self.repository.update_shipment(2, {'status': 'OUT_FOR_DELIVERY', 'from_zip': '', 'tracking_id': 'HACK'})

        self.assertEqual(outcome, 'updated')
        self.client.update_row.assert_called_once_with(
            2, ['TRK2', '20002', '30303', 'OUT_FOR_DELIVERY', '5', '2024-01-09T00:00:00Z', '2024-01-05T12:00:00Z']
        )
        self.client.append_rows.assert_not_called()
        self.assertEqual(self.client.fetch_rows.call_count, 2)

    def test_update_falls_back_to_append_when_patch_rejected(self):
        self.repository.list_shipments()
        self.client.update_row.side_effect = RemoteWriteError("Failed to update row 1: HTTP 405", status_code=405)

        outcome = self.repository.update_shipment(1, {'status': 'DELIVERED'})

        self.assertEqual(outcome, 'appended')
        merged_row = ['TRK1', '10001', '90210', 'DELIVERED', '3', '2024-01-08T00:00:00Z', '2024-01-05T12:00:00Z']
        self.client.update_row.assert_called_once_with(1, merged_row)
        self.client.append_rows.assert_called_once_with([merged_row])

    def test_update_fails_when_fallback_also_rejected(self):
        self.repository.list_shipments()
        self.client.update_row.side_effect = RemoteWriteError("HTTP 405", status_code=405)
        self.client.append_rows.side_effect = RemoteWriteError("HTTP 500", status_code=500)

        with self.assertRaises(RemoteWriteError) as ctx:
            self.repository.update_shipment(1, {'status': 'DELIVERED'})
        self.assertEqual(ctx.exception.status_code, 500)
        # No reload after a failed write.
        self.client.fetch_rows.assert_called_once()

    def test_update_lists_when_snapshot_is_empty(self):
        self.repository.update_shipment(1, {'days': '4'})
        self.client.update_row.assert_called_once()
        # One listing to find the row, one reload after the write.
        self.assertEqual(self.client.fetch_rows.call_count, 2)

    def test_update_unknown_row(self):
        with self.assertRaises(ShipmentNotFoundError):
            self.repository.update_shipment(99, {'status': 'DELIVERED'})
        self.client.update_row.assert_not_called()

    def test_update_rejects_bad_days(self):
        self.repository.list_shipments()

        for days in ('abc', '999999999'):
            with self.assertRaises(ValidationError):
                self.repository.update_shipment(1, {'days': days})
        self.client.update_row.assert_not_called()
        self.client.append_rows.assert_not_called()

    # --- Delete ---

    def test_delete_then_reload(self):
        self.repository.delete_shipment(2)

        self.client.delete_row.assert_called_once_with(2)
        self.client.fetch_rows.assert_called_once()

    def test_delete_rejected(self):
        self.client.delete_row.side_effect = RemoteWriteError("HTTP 404", status_code=404)

        with self.assertRaises(RemoteWriteError):
            self.repository.delete_shipment(7)
        self.client.fetch_rows.assert_not_called()

    def test_reload_failure_after_write_clears_cache(self):
        self.repository.list_shipments()
        self.client.fetch_rows.side_effect = FetchError("API Error: 502")

        self.repository.delete_shipment(1)

        self.assertEqual(self.repository.shipments, [])
        self.assertEqual(len(self.cache), 0)


if __name__ == '__main__':
    unittest.main()
