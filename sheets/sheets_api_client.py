# -*- coding: utf-8 -*-
"""
================================================================================
Spreadsheet API Client
================================================================================
Purpose:
----------------
A thin wrapper around the hosted spreadsheet CRUD endpoint that stores the
shipments. Every call targets one sheet tab:

- GET    {base}?tabId={tab}                  -> all rows
- POST   {base}?tabId={tab}                  -> append rows
- PATCH  {base}?tabId={tab}&rowIndex={n}     -> overwrite row n
- DELETE {base}?tabId={tab}&rowIndex={n}     -> remove row n

Request bodies are JSON arrays of rows, each row being the seven cells
`[tracking_id, from_zip, to_zip, status, days, eta, last_update]`.

Read failures raise `FetchError` and write failures raise `RemoteWriteError`.
Nothing is retried here; the admin repository owns the one fallback that exists.
----------------
"""

import logging
import requests

from common.exceptions import FetchError, RemoteWriteError
from tracking.shipment_record import extract_rows

DEFAULT_TIMEOUT = 30


class SheetsApiClient:

    def __init__(self, base_url, tab_id='Shipments', timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url
        self.tab_id = tab_id
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings):
        """Builds a client from the dictionary returned by `common.utils.get_sheets_settings()`."""
        return cls(settings['base_url'], settings['tab_id'], settings['request_timeout'])

    def _params(self, row_index=None):
        params = {'tabId': self.tab_id}
        if row_index is not None:
            params['rowIndex'] = row_index
        return params

    # =================================================================================
    # --- Reads ---
    # =================================================================================

    def fetch_rows(self):
        """
        Fetches every row of the tab.

        Returns:
            list: The raw rows, in sheet order.

        Raises:
            FetchError: On network failure, non-success status or a non-JSON body.
        """
        if not self.base_url:
            raise FetchError("Spreadsheet API base URL is not configured (SHEETS_API_BASE_URL).")

        logging.info(f"Fetching shipments from tab '{self.tab_id}'...")
        try:
            response = requests.get(self.base_url, params=self._params(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error while fetching shipments: {e}")
            raise FetchError(f"Network error while fetching shipments: {e}") from e

        if not 200 <= response.status_code < 300:
            logging.error(f"Received HTTP {response.status_code} from the spreadsheet API.")
            raise FetchError(f"API Error: {response.status_code} {response.reason}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"Spreadsheet API returned a body that is not JSON: {e}", status_code=response.status_code) from e

        rows = extract_rows(payload)
        logging.info(f"Received {len(rows)} rows from the spreadsheet API.")
        return rows

    # =================================================================================
    # --- Writes ---
    # =================================================================================

    def _write(self, method, action, rows=None, row_index=None):
        """Sends one write request and raises `RemoteWriteError` unless it succeeds."""
        if not self.base_url:
            raise RemoteWriteError("Spreadsheet API base URL is not configured (SHEETS_API_BASE_URL).")

        kwargs = {'params': self._params(row_index), 'timeout': self.timeout}
        if rows is not None:
            kwargs['json'] = rows

        try:
            response = requests.request(method, self.base_url, **kwargs)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during {action}: {e}")
            raise RemoteWriteError(f"Network error during {action}: {e}") from e

        if not 200 <= response.status_code < 300:
            logging.warning(f"Spreadsheet API rejected {action} with HTTP {response.status_code}.")
            raise RemoteWriteError(f"Failed to {action}: HTTP {response.status_code}", status_code=response.status_code)
        return response

    def append_rows(self, rows):
        """Appends rows at the end of the tab."""
        self._write('POST', 'append rows', rows=rows)
        logging.info(f"Appended {len(rows)} row(s) to tab '{self.tab_id}'.")

    def update_row(self, row_index, row):
        """Overwrites the row at `row_index` (1-based) with `row`."""
        self._write('PATCH', f'update row {row_index}', rows=[row], row_index=row_index)
        logging.info(f"Updated row {row_index} of tab '{self.tab_id}'.")

    def delete_row(self, row_index):
        """Removes the row at `row_index` (1-based)."""
        self._write('DELETE', f'delete row {row_index}', row_index=row_index)
        logging.info(f"Deleted row {row_index} of tab '{self.tab_id}'.")
