"""
Domain-specific exception hierarchy for the trainer slot application.
"""


class TrainerSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidDateError(TrainerSlotsError, ValueError):
    """Raised when a date value is absent, unparseable or not a real calendar date."""


class MalformedTimeInput(TrainerSlotsError, ValueError):
    """Raised when a time string is not a valid HH:MM (or h:MM AM/PM) value."""


class BackendAPIError(TrainerSlotsError):
    """Raised when availability or booking data cannot be fetched or parsed."""


class SelectionLimitError(TrainerSlotsError):
    """Raised when a user tries to select more slots than the session allows."""
