# -*- coding: utf-8 -*-
"""
================================================================================
Tracking Lookup
================================================================================
Purpose:
----------------
Resolves a customer's tracking number to the matching shipment records.

Key Steps:
1.  **Normalize**: The tracking number is trimmed and uppercased.
2.  **Cache or Fetch**: If the cache is empty or older than its ttl, every row
    is fetched from the spreadsheet API, parsed, and stored in the cache.
3.  **Filter**: Records whose tracking id matches exactly (ignoring case).
4.  **Sort**: Newest `last_update` first. Missing or invalid timestamps count
    as the epoch, and ties keep sheet order.

No matches is a normal result (an empty list). A failed fetch raises
`FetchError` and leaves the cache as it was, so a caller can fall back to the
previous data with `allow_stale=True`; `search_with_freshness` also says
whether the answer came from such stale data.

Manual refreshes and the periodic public refresh share `refresh_guard`. A
manual refresh waits for it, and a tick that finds it held is skipped.
----------------
"""

import logging
import threading

from common.exceptions import FetchError
from tracking.cache import ShipmentCache
from tracking.shipment_record import parse_rows, sort_key_timestamp


def normalize_tracking_id(tracking_id):
    if tracking_id is None:
        return ''
    return str(tracking_id).strip().upper()


def filter_and_sort(records, tracking_id):
    """Exact, case-insensitive matches for `tracking_id`, newest first."""
    matches = [record for record in records if record['tracking_id'].upper() == tracking_id]
    # sorted() is stable, so equal timestamps keep their sheet order.
    return sorted(matches, key=sort_key_timestamp, reverse=True)


class TrackingLookup:

    def __init__(self, client, cache=None):
        self.client = client
        self.cache = cache if cache is not None else ShipmentCache()
        # Held by force_refresh and by the public refresh ticker while they fetch.
        self.refresh_guard = threading.Lock()

    def refresh(self):
        """
        Fetches every row, parses it and replaces the cache contents.

        Returns:
            list: The freshly parsed records.

        Raises:
            FetchError: The cache is left untouched.
        """
        rows = self.client.fetch_rows()
        records = parse_rows(rows)
        self.cache.set(records)
        logging.info(f"Parsed {len(records)} shipments into the cache.")
        return records

    def force_refresh(self):
        """Drops the cache and fetches again, as the "Refresh" button does."""
        with self.refresh_guard:
            self.cache.clear()
            return self.refresh()

    def prefetch(self):
        """Warms the cache if it is not already valid. Returns True when a fetch happened."""
        if self.cache.is_valid():
            return False
        self.refresh()
        return True

    def search(self, tracking_id, allow_stale=False):
        """
        Finds every record for a tracking number.

        Args:
            tracking_id (str): The number as typed by the customer.
            allow_stale (bool): On a failed fetch, answer from the previous
                                cache contents instead of raising, if there are any.

        Returns:
            list[dict]: Matching records, newest first. Empty when nothing matches.
        """
        results, _ = self.search_with_freshness(tracking_id, allow_stale=allow_stale)
        return results

    def search_with_freshness(self, tracking_id, allow_stale=False):
        """
        Same as `search`, but returns `(records, stale)`.

        `stale` is True only when the fetch failed and the records came from
        the expired cache contents.
        """
        normalized_id = normalize_tracking_id(tracking_id)
        if not normalized_id:
            return [], False

        stale = False
        if self.cache.is_valid():
            records = self.cache.snapshot()
        else:
            try:
                records = self.refresh()
            except FetchError:
                stale_records = self.cache.snapshot()
                if not allow_stale or not stale_records:
                    raise
                logging.warning(f"Fetch failed, answering '{normalized_id}' from {len(stale_records)} stale cached records.")
                records = stale_records
                stale = True

        results = filter_and_sort(records, normalized_id)
        logging.info(f"Search for '{normalized_id}' returned {len(results)} record(s).")
        return results, stale
