"""
Cancellation of upcoming bookings.

The booking store is the source of truth: removing the calendar event is
best effort and a missing event counts as removed. The store update runs
whatever the calendar outcome.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from config import Settings
from db import SupabaseClient
from gcal import GoogleCalendarClient
from models.booking import Booking, BookingStatus
from utils.exceptions import BookingNotFoundError, CalendarError

logger = logging.getLogger(__name__)


class CancellationService:
    """Lists and cancels a user's upcoming confirmed bookings."""

    def __init__(
        self,
        calendar: GoogleCalendarClient,
        store: SupabaseClient,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.calendar = calendar
        self.store = store
        self.settings = settings
        self.clock = clock or (lambda: datetime.now(settings.tz))

    def _is_upcoming(self, booking: Booking, now: datetime) -> bool:
        return (
            booking.status == BookingStatus.CONFIRMED
            and booking.starts_at(self.settings.tz) > now
        )

    async def user_bookings(self, user_id: str) -> List[Booking]:
        """Every booking of a user, in any status."""
        return await self.store.get_bookings_by_user(user_id)

    def upcoming(self, bookings: List[Booking]) -> List[Booking]:
        """Keep confirmed future bookings, soonest first."""
        now = self.clock()
        upcoming = [b for b in bookings if self._is_upcoming(b, now)]
        upcoming.sort(key=lambda b: b.starts_at(self.settings.tz))
        return upcoming

    async def upcoming_bookings(self, user_id: str) -> List[Booking]:
        """Confirmed future bookings of a user, soonest first."""
        return self.upcoming(await self.user_bookings(user_id))

    async def cancel(self, user_id: str, booking_id: str) -> Booking:
        """
        Cancel one of the user's upcoming bookings.

        Raises:
            BookingNotFoundError: If the booking is unknown, belongs to someone
                else or is no longer upcoming
            DatabaseError: If the store update fails
        """
        booking = await self.store.get_booking_by_id(booking_id)
        if (
            booking is None
            or booking.user_id != user_id
            or not self._is_upcoming(booking, self.clock())
        ):
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        if booking.calendar_event_id:
            await self._remove_event(booking.calendar_event_id)

        return await self.store.cancel_booking(booking_id)

    async def _remove_event(self, event_id: str) -> None:
        try:
            await self.calendar.delete_event(event_id)
        except CalendarError as e:
            logger.warning(
                f"Calendar event {event_id} not removed, cancelling booking anyway: {e}"
            )
