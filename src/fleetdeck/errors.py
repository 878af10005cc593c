"""Exception types shared across fleetdeck.

Created: 2026-02-09
"""


class FleetdeckError(Exception):
    """Base class for all fleetdeck errors."""


class StorageError(FleetdeckError):
    """A storage tier (table, file) failed to read or write."""


class BackendNotConfigured(StorageError):
    """A tier is missing its credentials or path and cannot be used."""


class ReviewValidationError(FleetdeckError, ValueError):
    """A review submission is missing fields or carries invalid values."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class UnreachableURLError(ReviewValidationError):
    """A submitted preview URL did not answer within the check timeout."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Preview URL is not reachable: {url} ({reason})", field="previewUrl")
        self.url = url
        self.reason = reason


class ProviderUnavailable(BackendNotConfigured):
    """A fleet data provider cannot serve this resource (no credentials, no data)."""
