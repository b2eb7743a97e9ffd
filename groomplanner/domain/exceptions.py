"""
Domain-specific exception hierarchy for the groomplanner application.
"""


class GroomPlannerError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(GroomPlannerError, ValueError):
    """Raised when a caller passes malformed times, durations or ranges."""


class StorageError(GroomPlannerError):
    """Raised when booking data cannot be read from or written to the store."""


class FinalizedRecordError(StorageError):
    """Raised when a write targets a record that has already been finalized."""


class RecordNotFoundError(StorageError):
    """Raised when a write targets a record id the store does not know."""
