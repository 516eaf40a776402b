"""
daybook exception hierarchy.

All daybook exceptions inherit from DaybookError, making it easy for callers
to catch library-level errors while still distinguishing specific failure modes.
"""


class DaybookError(Exception):
    """Base exception class for all daybook errors."""


class ConfigurationError(DaybookError):
    """Raised for configuration errors (missing keys, invalid values)."""


class EntryValidationError(DaybookError, ValueError):
    """Raised when a date key or entry field is rejected at the mutation boundary."""


class APIError(DaybookError):
    """Raised for remote API communication errors."""


class TransportError(APIError):
    """Raised when a pull, push or delete against the entry service fails."""


class UploadError(APIError):
    """Raised when a media upload fails. Callers are expected to surface this."""


class CacheError(DaybookError):
    """Raised when the local state cache cannot be written."""


class AuthenticationError(APIError):
    """Raised when the remote service rejects the credentials or token."""
