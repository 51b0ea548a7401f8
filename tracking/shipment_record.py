# -*- coding: utf-8 -*-
"""
================================================================================
Shipment Record Parsing
================================================================================
Purpose:
----------------
Turns the raw rows returned by the spreadsheet API into shipment dictionaries
and back again.

The sheet answers with rows in one of two shapes:
1.  **Positional**: `[tracking_id, from_zip, to_zip, status, days, eta, last_update]`,
    possibly with trailing columns missing.
2.  **Named**: an object with the same fields, where some keys have alternate
    spellings (`trackingId`, `id`, `fromZip`, `toZip`, `lastUpdate`).

Parsing never raises: a row that cannot be turned into a record is dropped,
and the rest of the fetch carries on.
----------------
"""

import logging
from datetime import datetime, timezone

ROW_COLUMNS = ['tracking_id', 'from_zip', 'to_zip', 'status', 'days', 'eta', 'last_update']
DEFAULT_TRANSIT_DAYS = 3

# Accepted spellings for each field of a named row, in priority order.
FIELD_ALIASES = {
    'tracking_id': ('tracking_id', 'trackingId', 'id'),
    'from_zip': ('from_zip', 'fromZip'),
    'to_zip': ('to_zip', 'toZip'),
    'status': ('status',),
    'days': ('days',),
    'eta': ('eta',),
    'last_update': ('last_update', 'lastUpdate'),
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now():
    return datetime.now(timezone.utc)


# =====================================================================================
# --- Timestamps ---
# =====================================================================================

def parse_timestamp(value):
    """
    Parses an ISO-8601 timestamp from the sheet.

    Accepts a trailing 'Z', dates without a time and naive values (treated as
    UTC). Returns an aware datetime, or None when the value is empty or invalid.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offsets that push the value past year 1 or year 9999.
        return None


def format_timestamp(moment):
    """Formats a datetime the way rows are written back: 2024-01-05T00:00:00Z."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%SZ')


def sort_key_timestamp(record):
    """`last_update` as a datetime, with the epoch standing in for missing values."""
    return parse_timestamp(record.get('last_update')) or EPOCH


# =====================================================================================
# --- Row Parsing ---
# =====================================================================================

def _cell_text(value):
    """Coerces a cell to stripped text; None and empty cells become ''."""
    if value is None:
        return ''
    return str(value).strip()


def _first_present(row, aliases):
    for key in aliases:
        value = _cell_text(row.get(key))
        if value:
            return value
    return ''


def parse_row(row, row_index=None, now=None):
    """
    Normalizes one sheet row into a shipment dictionary.

    Args:
        row (list or dict): A positional row or a named row.
        row_index (int): 1-based position of the row in the sheet, if known.
        now (datetime): Used as `last_update` when the row has none.

    Returns:
        dict or None: The shipment record, or None when the row is neither a
                      list nor a mapping. Never raises.
    """
    if isinstance(row, (list, tuple)):
        cells = [_cell_text(value) for value in row[:len(ROW_COLUMNS)]]
        cells += [''] * (len(ROW_COLUMNS) - len(cells))
        record = dict(zip(ROW_COLUMNS, cells))
    elif isinstance(row, dict):
        record = {field: _first_present(row, aliases) for field, aliases in FIELD_ALIASES.items()}
    else:
        return None

    if not record['last_update']:
        record['last_update'] = format_timestamp(now or utc_now())
    record['row_index'] = row_index
    return record


def parse_rows(rows, now=None):
    """
    Parses every row of a fetch, in order.

    Rows that do not parse, or that have no tracking id, are skipped. The
    survivors are numbered from 1 in order, and that number is the `row_index`
    the admin operations address.
    """
    now = now or utc_now()
    records = []
    skipped = 0
    for row in rows:
        record = parse_row(row, row_index=len(records) + 1, now=now)
        if record is None or not record['tracking_id']:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logging.debug(f"Skipped {skipped} empty or unreadable rows out of {len(rows)}.")
    return records


def extract_rows(payload):
    """
    Finds the list of rows inside an API response body.

    Handles a raw list, an object with a `data` list, or any object holding a
    list-valued field (the first one wins). Anything else yields no rows.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if isinstance(payload.get('data'), list):
            return payload['data']
        for value in payload.values():
            if isinstance(value, list):
                return value
    return []


def record_to_row(record):
    """Lays a shipment record out in the sheet's fixed column order."""
    return [_cell_text(record.get(column)) for column in ROW_COLUMNS]


def transit_days(record, default=DEFAULT_TRANSIT_DAYS):
    """The record's `days` as an integer, or `default` when blank or not a number."""
    try:
        return int(_cell_text(record.get('days')))
    except ValueError:
        return default
