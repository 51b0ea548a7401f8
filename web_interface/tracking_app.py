# -*- coding: utf-8 -*-
"""
================================================================================
Package Tracking Web Application
================================================================================
Purpose:
----------------
This script launches a Flask-based JSON API in front of the tracking lookup and
the admin repository. The pages themselves (search form, progress bar, admin
table and modals) live in the frontend; this layer only hands them data.

1.  **Public API**: Look up a tracking number, force a refresh, and report how
    old the cached data is.
2.  **Admin API**: List, add, update and delete shipment rows by row index.

The lookup and the admin repository share one cache, so an admin change is
visible to the next customer search straight away.

The application can be run by a WSGI server like Gunicorn. The background
refresh tickers start when the module is imported with
`START_BACKGROUND_REFRESH=1` (environment or secrets.txt), once per worker
process. Running this script directly starts them unconditionally.
----------------
"""

# =====================================================================================
# --- Imports and Setup ---
# =====================================================================================
from flask import Flask, request, jsonify
import logging
import os
import sys

# --- Project Path Setup ---
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from admin.repository import AdminRepository
from common.exceptions import FetchError, RemoteWriteError, ShipmentNotFoundError, ValidationError
from common.utils import get_secret, get_sheets_settings
from sheets.sheets_api_client import SheetsApiClient
from tracking import status_catalog
from tracking.cache import ShipmentCache
from tracking.lookup import TrackingLookup, normalize_tracking_id
from tracking.refresh_scheduler import build_refresh_tickers
from tracking.summary import build_tracking_summary

app = Flask(__name__)

# --- Shared Services ---
settings = get_sheets_settings()
shipment_cache = ShipmentCache(ttl_seconds=settings['cache_ttl_seconds'])
sheets_client = SheetsApiClient.from_settings(settings)
tracking_lookup = TrackingLookup(sheets_client, shipment_cache)
admin_repository = AdminRepository(sheets_client, shipment_cache)

# --- Background Refresh ---
refresh_tickers = []


def start_background_refresh():
    """
    Starts the public refresh and admin poll tickers on one daemon thread.

    Calling it again while they run does nothing. Returns the ticker list.
    """
    if refresh_tickers:
        return refresh_tickers
    tickers = build_refresh_tickers(tracking_lookup, admin_repository, settings)
    for ticker in tickers:
        ticker.start()
    # Both tickers share one scheduler, so driving the first one runs both jobs.
    tickers[0].start_background()
    refresh_tickers.extend(tickers)
    logging.info(f"Background refresh started, every {settings['refresh_interval_seconds']} seconds.")
    return refresh_tickers


if str(get_secret('START_BACKGROUND_REFRESH', '')).strip().lower() in ('1', 'true', 'yes'):
    start_background_refresh()


# =====================================================================================
# --- Public JSON API ---
# =====================================================================================

@app.route('/api/track/<tracking_id>', methods=['GET'])
def track_shipment(tracking_id):
    """
    Looks up a tracking number.

    Answers with the newest record's summary plus every matching record. When
    the spreadsheet API is down but older data is cached, the answer comes from
    that data and carries `"stale": true`.
    """
    normalized_id = normalize_tracking_id(tracking_id)
    try:
        records, stale = tracking_lookup.search_with_freshness(normalized_id, allow_stale=True)
    except FetchError as e:
        return jsonify({"error": "We're having trouble connecting to our tracking system.", "details": str(e)}), 502

    if not records:
        return jsonify({"error": "Tracking number not found", "tracking_id": normalized_id}), 404

    summary = build_tracking_summary(records)
    summary['records'] = records
    summary['stale'] = stale
    return jsonify(summary), 200


@app.route('/api/track/refresh', methods=['POST'])
def refresh_shipments():
    """Drops the cache and fetches every shipment again."""
    try:
        records = tracking_lookup.force_refresh()
    except FetchError as e:
        return jsonify({"error": str(e)}), 502
    return jsonify({"count": len(records), "cache_status": shipment_cache.describe_age()}), 200


@app.route('/api/cache/status', methods=['GET'])
def cache_status():
    return jsonify({
        "count": len(shipment_cache),
        "valid": shipment_cache.is_valid(),
        "status": shipment_cache.describe_age()
    }), 200


@app.route('/api/statuses', methods=['GET'])
def list_statuses():
    return jsonify(status_catalog.list_statuses()), 200


# =====================================================================================
# --- Admin JSON API ---
# =====================================================================================

@app.route('/api/admin/shipments', methods=['GET'])
def admin_list_shipments():
    try:
        shipments = admin_repository.list_shipments()
    except FetchError as e:
        return jsonify({"error": "Failed to load shipments. Please try again.", "details": str(e)}), 502

    # Copies, so the cached records stay untouched.
    rows = [dict(shipment, badge=status_catalog.metadata_for(shipment['status'])['badge']) for shipment in shipments]
    return jsonify(rows), 200


@app.route('/api/admin/shipments', methods=['POST'])
def admin_add_shipment():
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({"error": "A JSON body with the shipment fields is required"}), 400

    try:
        record = admin_repository.create_shipment(data)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except RemoteWriteError as e:
        logging.error(f"Error adding shipment: {e}")
        return jsonify({"error": "Failed to add shipment. Please try again.", "details": str(e)}), 502
    return jsonify({"message": "Shipment added successfully!", "shipment": record}), 201


@app.route('/api/admin/shipments/<int:row_index>', methods=['PATCH', 'PUT'])
def admin_update_shipment(row_index):
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({"error": "The request body must be a JSON object of shipment fields"}), 400
    try:
        outcome = admin_repository.update_shipment(row_index, data)
    except ShipmentNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except (FetchError, RemoteWriteError) as e:
        logging.error(f"Error updating shipment at row {row_index}: {e}")
        return jsonify({"error": "Failed to update shipment. Please try again.", "details": str(e)}), 502
    return jsonify({"message": "Shipment updated successfully!", "outcome": outcome}), 200


@app.route('/api/admin/shipments/<int:row_index>', methods=['DELETE'])
def admin_delete_shipment(row_index):
    try:
        admin_repository.delete_shipment(row_index)
    except RemoteWriteError as e:
        logging.error(f"Error deleting shipment at row {row_index}: {e}")
        return jsonify({"error": "Failed to delete shipment. Please try again.", "details": str(e)}), 502
    return jsonify({"message": "Shipment deleted successfully!"}), 200


# =====================================================================================
# --- Direct Execution (for development) ---
# =====================================================================================
if __name__ == '__main__':
    # Keep the cache warm while the development server runs.
    start_background_refresh()

    # For production, a proper WSGI server like Gunicorn should be used.
    app.run(debug=True, host='0.0.0.0', port=5002, use_reloader=False)
