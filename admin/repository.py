# -*- coding: utf-8 -*-
"""
================================================================================
Shipment Admin Repository
================================================================================
Purpose:
----------------
Create, update and delete operations for the admin panel, written straight to
the spreadsheet API.

Rows are addressed by `row_index`, their 1-based position among the non-empty
rows of the last listing. It is NOT the tracking id, and any insert or delete that
shifts rows makes previously listed indexes point elsewhere. Callers should
list again before acting on an index they have held for a while.

Key Steps of every mutation:
1.  **Write**: Send the POST / PATCH / DELETE to the spreadsheet API. A rejected
    write raises `RemoteWriteError` and nothing local changes.
2.  **Reload**: List every shipment again and replace the shared cache, so that
    customer lookups see the new state. Nothing is patched locally.

Updates have one fallback: when the PATCH is rejected, the merged row is
appended with a POST instead. If the store silently accepts a PATCH it does not
really support, no fallback happens and the sheet may hold a stale row; the
repository cannot tell the two apart.
----------------
"""

import logging
from datetime import timedelta

from common.exceptions import FetchError, RemoteWriteError, ShipmentNotFoundError, ValidationError
from tracking.shipment_record import (
    DEFAULT_TRANSIT_DAYS, format_timestamp, parse_rows, record_to_row, transit_days, utc_now
)

REQUIRED_FIELDS = ('tracking_id', 'from_zip', 'to_zip', 'status')
EDITABLE_FIELDS = ('from_zip', 'to_zip', 'status', 'days', 'eta')
MAX_TRANSIT_DAYS = 365


def _clean(value):
    if value is None:
        return ''
    return str(value).strip()


def _check_days(days):
    """Blank is allowed. Anything else must be a whole number of days from 0 to 365."""
    if not days:
        return
    try:
        value = int(days)
    except ValueError:
        raise ValidationError(f"Transit days must be a whole number, got '{days}'.")
    if not 0 <= value <= MAX_TRANSIT_DAYS:
        raise ValidationError(f"Transit days must be between 0 and {MAX_TRANSIT_DAYS}, got {value}.")


class AdminRepository:

    def __init__(self, client, cache=None, clock=utc_now):
        self.client = client
        self.cache = cache
        self.clock = clock
        # Records from the most recent listing; their row_index values are the handles.
        self.shipments = []

    # =================================================================================
    # --- Reads ---
    # =================================================================================

    def list_shipments(self):
        """
        Fetches every shipment with its 1-based row index.

        The result also replaces the shared lookup cache, if one was given.

        Raises:
            FetchError: The snapshot and the cache keep their previous contents.
        """
        rows = self.client.fetch_rows()
        records = parse_rows(rows, now=self.clock())
        self.shipments = records
        if self.cache is not None:
            self.cache.set(records)
        logging.info(f"Admin listing loaded {len(records)} shipments.")
        return records

    def get_shipment(self, row_index):
        """
        Returns the record at `row_index`, listing again if the snapshot lacks it.

        Raises:
            ShipmentNotFoundError: No shipment at that position.
        """
        for record in self.shipments:
            if record['row_index'] == row_index:
                return record

        for record in self.list_shipments():
            if record['row_index'] == row_index:
                return record
        raise ShipmentNotFoundError(f"Shipment not found at row {row_index}.")

    def _reload_after_write(self):
        """Mandatory reload after a confirmed write."""
        try:
            self.list_shipments()
        except FetchError as e:
            # The write went through; make sure nobody keeps serving the old rows.
            logging.error(f"Write succeeded but reloading shipments failed: {e}")
            self.shipments = []
            if self.cache is not None:
                self.cache.clear()

    # =================================================================================
    # --- Writes ---
    # =================================================================================

    def create_shipment(self, fields):
        """
        Appends a new shipment row.

        `days` defaults to "3" and a missing `eta` is now plus `days` days.
        `last_update` is always set to now.

        Args:
            fields (dict): At least tracking_id, from_zip, to_zip and status.

        Returns:
            dict: The record as written (without a row index).

        Raises:
            ValidationError: A required field is blank or `days` is not a valid day count.
            RemoteWriteError: The store rejected the append.
        """
        record = {column: _clean(fields.get(column)) for column in REQUIRED_FIELDS + ('days', 'eta')}
        missing = [column for column in REQUIRED_FIELDS if not record[column]]
        if missing:
            raise ValidationError(f"Please fill in all required fields: {', '.join(missing)}.")
        _check_days(record['days'])

        now = self.clock()
        if not record['days']:
            record['days'] = str(DEFAULT_TRANSIT_DAYS)
        if not record['eta']:
            record['eta'] = format_timestamp(now + timedelta(days=transit_days(record)))
        record['last_update'] = format_timestamp(now)

        self.client.append_rows([record_to_row(record)])
        logging.info(f"Shipment {record['tracking_id']} added.")
        self._reload_after_write()
        return record

    def update_shipment(self, row_index, fields):
        """
        Applies a partial update to the shipment at `row_index`.

        Blank or missing fields keep their current value and the tracking id
        never changes. The merged row is PATCHed in place; if the store rejects
        the PATCH, the merged row is appended instead.

        Returns:
            str: "updated" when the PATCH succeeded, "appended" when the
                 fallback POST did.

        Raises:
            ShipmentNotFoundError: No shipment at that position.
            ValidationError: `days` is not a valid day count.
            RemoteWriteError: Both the PATCH and the fallback POST were rejected.
        """
        _check_days(_clean(fields.get('days')))
        current = self.get_shipment(row_index)

        merged = dict(current)
        for column in EDITABLE_FIELDS:
            value = _clean(fields.get(column))
            if value:
                merged[column] = value
        merged['last_update'] = format_timestamp(self.clock())
        row = record_to_row(merged)

        try:
            self.client.update_row(row_index, row)
            outcome = 'updated'
        except RemoteWriteError as e:
            logging.warning(f"PATCH for row {row_index} was rejected ({e}). Appending the merged row instead.")
            try:
                self.client.append_rows([row])
            except RemoteWriteError as fallback_error:
                raise RemoteWriteError(
                    f"Failed to update shipment {merged['tracking_id']}: {fallback_error}",
                    status_code=fallback_error.status_code
                ) from fallback_error
            outcome = 'appended'

        logging.info(f"Shipment {merged['tracking_id']} at row {row_index} {outcome}.")
        self._reload_after_write()
        return outcome

    def delete_shipment(self, row_index):
        """
        Removes the row at `row_index`.

        Raises:
            RemoteWriteError: The store rejected the delete.
        """
        self.client.delete_row(row_index)
        logging.info(f"Shipment at row {row_index} deleted.")
        self._reload_after_write()
