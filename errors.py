"""Error types for the Medication Adherence Tracker.

Validation and scheduling errors abort the operation that raised them.
Persistence errors are caught and logged by the persistence gateway and
never reach the caller.
"""


class AdherenceError(Exception):
    """Base class for all tracker errors."""


class ValidationError(AdherenceError):
    """Add-request is missing a name or has no usable times."""


class InvalidTimeError(ValidationError):
    """A time token is not a valid 24-hour HH:MM value."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid time: {value}")


class SchedulingError(AdherenceError):
    """The notification service refused or failed a schedule request."""


class NotificationError(AdherenceError):
    """Raised by notification service implementations."""


class PersistenceError(AdherenceError):
    """Reading from or writing to the key-value store failed."""
