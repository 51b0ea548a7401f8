# -*- coding: utf-8 -*-
"""
================================================================================
Shipment Status Catalog
================================================================================
Purpose:
----------------
The fixed, ordered list of lifecycle stages a shipment passes through. The
position of a status in this list drives the delivery progress shown to
customers: progress = (index + 1) / total.

Statuses that are not in the catalog never raise. They get index -1, 0%
progress and a neutral fallback entry so the caller can still display them.
----------------
"""

STATUS_FLOW = [
    {'id': 'INFO_RECEIVED', 'label': 'Info Received', 'icon': 'fas fa-info-circle', 'color': '#6c757d', 'badge': 'bg-secondary'},
    {'id': 'PICKED_UP', 'label': 'Picked Up', 'icon': 'fas fa-box', 'color': '#17a2b8', 'badge': 'bg-info'},
    {'id': 'LOCAL_ARRIVAL_SCAN', 'label': 'Arrival Scan', 'icon': 'fas fa-truck-loading', 'color': '#007bff', 'badge': 'bg-primary'},
    {'id': 'LOCAL_PROCESSED', 'label': 'Processed', 'icon': 'fas fa-cogs', 'color': '#6610f2', 'badge': 'bg-primary'},
    {'id': 'LOCAL_DEPART_SCAN', 'label': 'Depart Scan', 'icon': 'fas fa-truck-moving', 'color': '#fd7e14', 'badge': 'bg-primary'},
    {'id': 'IN_TRANSIT', 'label': 'In Transit', 'icon': 'fas fa-plane', 'color': '#20c997', 'badge': 'bg-warning'},
    {'id': 'OUT_FOR_DELIVERY', 'label': 'Out for Delivery', 'icon': 'fas fa-shipping-fast', 'color': '#ffc107', 'badge': 'bg-warning text-dark'},
    {'id': 'DELIVERED', 'label': 'Delivered', 'icon': 'fas fa-check-circle', 'color': '#28a745', 'badge': 'bg-success'},
]

UNKNOWN_ICON = 'fas fa-question-circle'
UNKNOWN_COLOR = '#6c757d'
UNKNOWN_BADGE = 'bg-secondary'

# id -> position, built once from STATUS_FLOW.
_STATUS_INDEX = {status['id']: index for index, status in enumerate(STATUS_FLOW)}


def normalize_status_id(status):
    """Uppercases a status and turns spaces into underscores ("in transit" -> "IN_TRANSIT")."""
    if status is None:
        return ''
    return str(status).strip().upper().replace(' ', '_')


def index_of(status):
    """
    Returns the position of a status in the catalog.

    Args:
        status (str): A status id, in any case, with spaces or underscores.

    Returns:
        int: 0..7 for known statuses, -1 for anything else.
    """
    return _STATUS_INDEX.get(normalize_status_id(status), -1)


def metadata_for(status):
    """
    Returns the display metadata for a status.

    Unknown statuses get a deterministic fallback built from the id itself, so
    the result always carries `id`, `label`, `icon`, `color` and `badge`.
    """
    index = index_of(status)
    if index >= 0:
        return dict(STATUS_FLOW[index])

    status_id = normalize_status_id(status)
    return {
        'id': status_id,
        'label': status_id.replace('_', ' ').title() if status_id else 'Unknown',
        'icon': UNKNOWN_ICON,
        'color': UNKNOWN_COLOR,
        'badge': UNKNOWN_BADGE,
    }


def progress_percent(status):
    """Delivery progress for a status, 0.0 when the status is unknown."""
    index = index_of(status)
    if index < 0:
        return 0.0
    return (index + 1) / len(STATUS_FLOW) * 100


def list_statuses():
    """A copy of the ordered catalog, safe for callers to modify."""
    return [dict(status) for status in STATUS_FLOW]
