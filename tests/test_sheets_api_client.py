import os
import sys
import unittest
import requests
from unittest.mock import patch, MagicMock

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from common.exceptions import FetchError, RemoteWriteError
from sheets.sheets_api_client import SheetsApiClient

BASE_URL = 'https://sheets.example.com/api/sheet'
ROW = ["TRK1", "10001", "90210", "IN_TRANSIT", "3", "2024-01-10T00:00:00Z", "2024-01-05T00:00:00Z"]


class TestFetchRows(unittest.TestCase):

    def setUp(self):
        self.client = SheetsApiClient(BASE_URL, 'Shipments', timeout=10)

    @patch('requests.get')
    def test_fetch_rows_success(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        mock_get.return_value.json.return_value = {'data': [ROW]}

        rows = self.client.fetch_rows()

        self.assertEqual(rows, [ROW])
        mock_get.assert_called_once_with(BASE_URL, params={'tabId': 'Shipments'}, timeout=10)

    @patch('requests.get')
    def test_fetch_rows_http_error(self, mock_get):
        mock_get.return_value = MagicMock(status_code=503, reason='Service Unavailable')

        with self.assertRaises(FetchError) as ctx:
            self.client.fetch_rows()
        self.assertEqual(ctx.exception.status_code, 503)

    @patch('requests.get')
    def test_fetch_rows_network_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with self.assertRaises(FetchError):
            self.client.fetch_rows()

    @patch('requests.get')
    def test_fetch_rows_non_json_body(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        mock_get.return_value.json.side_effect = ValueError("No JSON object could be decoded")

        with self.assertRaises(FetchError):
            self.client.fetch_rows()

    @patch('requests.get')
    def test_fetch_without_base_url(self, mock_get):
        with self.assertRaises(FetchError):
            SheetsApiClient(None).fetch_rows()
        mock_get.assert_not_called()


class TestWrites(unittest.TestCase):

    def setUp(self):
        self.client = SheetsApiClient(BASE_URL, 'Shipments', timeout=10)

    @patch('requests.request')
    def test_append_rows_posts_row_array(self, mock_request):
        mock_request.return_value = MagicMock(status_code=200)

        self.client.append_rows([ROW])

        mock_request.assert_called_once_with(
            'POST', BASE_URL, params={'tabId': 'Shipments'}, timeout=10, json=[ROW]
        )

    @patch('requests.request')
    def test_update_row_patches_with_row_index(self, mock_request):
        mock_request.return_value = MagicMock(status_code=200)

        self.client.update_row(4, ROW)

        mock_request.assert_called_once_with(
            'PATCH', BASE_URL, params={'tabId': 'Shipments', 'rowIndex': 4}, timeout=10, json=[ROW]
        )

    @patch('requests.request')
    def test_delete_row(self, mock_request):
        mock_request.return_value = MagicMock(status_code=204)

        self.client.delete_row(2)

        mock_request.assert_called_once_with(
            'DELETE', BASE_URL, params={'tabId': 'Shipments', 'rowIndex': 2}, timeout=10
        )

    @patch('requests.request')
    def test_rejected_write_raises(self, mock_request):
        mock_request.return_value = MagicMock(status_code=405)

        with self.assertRaises(RemoteWriteError) as ctx:
            self.client.update_row(1, ROW)
        self.assertEqual(ctx.exception.status_code, 405)

    @patch('requests.request')
    def test_network_error_on_write_raises(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout("timed out")

        with self.assertRaises(RemoteWriteError):
            self.client.delete_row(1)

    def test_from_settings(self):
        client = SheetsApiClient.from_settings({
            'base_url': BASE_URL, 'tab_id': 'Archive', 'request_timeout': 5,
            'cache_ttl_seconds': 30, 'refresh_interval_seconds': 30
        })
        self.assertEqual((client.base_url, client.tab_id, client.timeout), (BASE_URL, 'Archive', 5))


if __name__ == '__main__':
    unittest.main()
