"""
Error types shared by the tracking lookup, the admin repository and the web layer.

Remote failures are raised and bubble up to the immediate caller. Rows that
cannot be parsed and searches with no matches are NOT errors and never show
up here.
"""


class ShipTrackError(Exception):
    """Base class for every error raised by this project."""


class FetchError(ShipTrackError):
    """
    Reading the shipment sheet failed: network error, non-success HTTP status
    or a body that is not JSON.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RemoteWriteError(ShipTrackError):
    """The spreadsheet API rejected a create, update or delete."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(ShipTrackError):
    """Shipment fields supplied by an admin are incomplete."""


class ShipmentNotFoundError(ShipTrackError):
    """No shipment exists at the requested row index."""
