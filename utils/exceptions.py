"""
Custom exception classes for the booking bot.
Provides specific error types instead of generic exceptions.
"""


class DatabaseError(Exception):
    """Base exception for booking store operations."""

    pass


class BookingNotFoundError(DatabaseError):
    """Raised when a booking is not found or does not belong to the user."""

    pass


class BookingCreationError(Exception):
    """Raised when the confirm step fails to create the event or the booking."""

    pass


class CalendarError(Exception):
    """Base exception for Google Calendar operations."""

    pass


class CalendarEventNotFoundError(CalendarError):
    """Raised when a calendar event does not exist."""

    pass


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass


class InvalidNameError(ValidationError):
    """Raised when the client name is too short."""

    pass


class WizardError(Exception):
    """Base exception for booking wizard flow errors."""

    pass


class SessionNotFoundError(WizardError):
    """Raised when a chat has no active booking session."""

    pass


class InvalidTransitionError(WizardError):
    """Raised when an event is not allowed in the session's current step."""

    def __init__(self, step, event):
        self.step = step
        self.event = event
        super().__init__(f"Event {event!s} is not allowed in step {step!s}")
