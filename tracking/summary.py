"""
Presentation-neutral digest of a tracking search.

The web adapter and the command line both show the same things for a search:
the newest record, how far along the status progression it is, which
milestones are done, and when delivery is expected. This module computes those
values so that neither caller has to.
"""

from datetime import timedelta

from tracking import status_catalog
from tracking.shipment_record import format_timestamp, parse_timestamp, transit_days, utc_now


def estimate_eta(record, now=None):
    """
    Works out the delivery estimate for one record.

    DELIVERED records report their eta as the delivery time, OUT_FOR_DELIVERY
    records are due today, and everything else uses the record's eta or, when
    that is missing or invalid, now plus the transit days (3 by default).
    """
    status_id = status_catalog.normalize_status_id(record.get('status'))
    if status_id == 'DELIVERED':
        return {'kind': 'delivered', 'eta': record.get('eta') or None}
    if status_id == 'OUT_FOR_DELIVERY':
        return {'kind': 'today', 'eta': None}

    days = transit_days(record)
    eta = parse_timestamp(record.get('eta'))
    if eta is None:
        try:
            eta = (now or utc_now()) + timedelta(days=days)
        except OverflowError:
            # A day count edited straight into the sheet can overshoot year 9999.
            return {'kind': 'estimated', 'eta': None, 'days': days}
    return {'kind': 'estimated', 'eta': format_timestamp(eta), 'days': days}


def build_milestones(status):
    """Every catalog entry, flagged `completed` up to the current status and `active` at it."""
    current_index = status_catalog.index_of(status)
    milestones = []
    for index, entry in enumerate(status_catalog.list_statuses()):
        entry['completed'] = index <= current_index
        entry['active'] = index == current_index
        milestones.append(entry)
    return milestones


def build_tracking_summary(records, now=None):
    """
    Summarizes search results, newest record first.

    Args:
        records (list[dict]): Output of `TrackingLookup.search`.
        now (datetime): Reference time for eta estimates.

    Returns:
        dict or None: None when there are no records.
    """
    if not records:
        return None

    shipment = records[0]
    status = shipment.get('status')
    return {
        'shipment': shipment,
        'total_results': len(records),
        'multiple_records': len(records) > 1,
        'status_index': status_catalog.index_of(status),
        'progress_percent': status_catalog.progress_percent(status),
        'status': status_catalog.metadata_for(status),
        'milestones': build_milestones(status),
        'eta': estimate_eta(shipment, now=now),
    }
