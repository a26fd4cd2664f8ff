"""Google Calendar gateway."""

from .client import GoogleCalendarClient

__all__ = ["GoogleCalendarClient"]
