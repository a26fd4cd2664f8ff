"""
Booking wizard: date pick, time pick, name entry, confirmation, persistence.

Transport-agnostic. Handlers translate Telegram updates into wizard calls
and render the results.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional

from availability import compute_available_slots, has_future_candidates
from bot.session import BookingSession, SessionStore
from bot.states import WizardEvent, WizardStep, next_step
from config import Settings
from db import SupabaseClient
from gcal import GoogleCalendarClient
from models.booking import Booking, BookingCreate
from models.slot import AvailableSlot
from utils.datetime_utils import combine_local, parse_time_value
from utils.exceptions import (
    BookingCreationError,
    CalendarError,
    DatabaseError,
    SessionNotFoundError,
)
from utils.validation import validate_client_name

logger = logging.getLogger(__name__)


class BookingWizard:
    """Drives one chat's booking session through the transition table."""

    def __init__(
        self,
        sessions: SessionStore,
        calendar: GoogleCalendarClient,
        store: SupabaseClient,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sessions = sessions
        self.calendar = calendar
        self.store = store
        self.settings = settings
        self.clock = clock or (lambda: datetime.now(settings.tz))

    async def _require(self, chat_id: int) -> BookingSession:
        session = await self.sessions.get(chat_id)
        if session is None:
            raise SessionNotFoundError(f"No booking session for chat {chat_id}")
        return session

    # ========== Availability ==========

    async def available_slots(self, day: date) -> List[AvailableSlot]:
        """
        Free slots for a day.

        The calendar is not queried when every candidate already lies in the
        past.
        """
        s = self.settings
        tz = s.tz
        now = self.clock()

        if not has_future_candidates(
            day, s.work_start, s.work_end, s.slot_duration, s.buffer_time, now, tz
        ):
            return []

        # Whole day: the last slot is not clipped and may run past work_end
        day_start = combine_local(day, time.min, tz)
        day_end = combine_local(day + timedelta(days=1), time.min, tz)
        busy = await self.calendar.list_busy_intervals(day_start, day_end)

        return compute_available_slots(
            day=day,
            work_start=s.work_start,
            work_end=s.work_end,
            slot_duration=s.slot_duration,
            buffer_time=s.buffer_time,
            busy_intervals=busy,
            now=now,
            tz=tz,
        )

    # ========== Wizard steps ==========

    async def start(self, chat_id: int, username: Optional[str] = None) -> BookingSession:
        """Begin a new booking, replacing any session the chat had."""
        session = BookingSession(step=WizardStep.CHOOSE_DATE, username=username)
        await self.sessions.set(chat_id, session)
        return session

    async def choose_date(self, chat_id: int, day: date) -> List[AvailableSlot]:
        """
        Record the date and return its free slots.

        With no free slots, or when the calendar fails, the session is
        discarded.

        Raises:
            SessionNotFoundError: If the chat has no session
            InvalidTransitionError: If the session is not choosing a date
            CalendarError: If busy intervals cannot be loaded
        """
        session = await self._require(chat_id)
        step = next_step(session.step, WizardEvent.DATE_CHOSEN)

        try:
            slots = await self.available_slots(day)
        except CalendarError:
            await self.sessions.delete(chat_id)
            raise

        if not slots:
            await self.sessions.delete(chat_id)
            return []

        session.date = day
        session.step = step
        await self.sessions.set(chat_id, session)
        return slots

    async def choose_time(self, chat_id: int, value: str) -> BookingSession:
        """
        Record the chosen start time (HH:MM).

        Raises:
            ValueError: If the value is not an HH:MM time
        """
        session = await self._require(chat_id)
        step = next_step(session.step, WizardEvent.TIME_CHOSEN)
        parse_time_value(value)

        session.time = value
        session.step = step
        await self.sessions.set(chat_id, session)
        return session

    async def back_to_date(self, chat_id: int) -> BookingSession:
        """Return from time selection to date selection."""
        session = await self._require(chat_id)
        session.step = next_step(session.step, WizardEvent.BACK_TO_DATE)
        session.date = None
        await self.sessions.set(chat_id, session)
        return session

    async def enter_name(self, chat_id: int, text: str) -> Optional[BookingSession]:
        """
        Record the client name.

        Free text outside the name step is not part of the wizard, so it is
        ignored (None is returned).

        Raises:
            InvalidNameError: If the name is too short; the session is unchanged
        """
        session = await self.sessions.get(chat_id)
        if session is None or session.step != WizardStep.ENTER_NAME:
            return None

        name = validate_client_name(text)
        session.name = name
        session.step = next_step(session.step, WizardEvent.NAME_ENTERED)
        await self.sessions.set(chat_id, session)
        return session

    async def decline(self, chat_id: int) -> None:
        """Drop the session without side effects."""
        session = await self._require(chat_id)
        next_step(session.step, WizardEvent.DECLINED)
        await self.sessions.delete(chat_id)

    async def confirm(self, chat_id: int) -> Booking:
        """
        Create the calendar event and the booking record.

        The session is discarded whatever the outcome.

        Raises:
            BookingCreationError: If the event or the booking cannot be created
        """
        session = await self._require(chat_id)
        next_step(session.step, WizardEvent.CONFIRMED)

        try:
            return await self._persist(chat_id, session)
        finally:
            await self.sessions.delete(chat_id)

    async def _persist(self, chat_id: int, session: BookingSession) -> Booking:
        s = self.settings
        start = combine_local(session.date, parse_time_value(session.time), s.tz)

        try:
            event_id = await self.calendar.create_event(
                summary=f"{s.service_name} - {session.name}",
                description=(
                    f"Client: {session.name}\n"
                    f"Telegram ID: {chat_id}\n"
                    f"Price: {s.service_price}{s.service_currency}"
                ),
                start=start,
                duration_minutes=s.service_duration,
            )
        except CalendarError as e:
            raise BookingCreationError(f"Calendar event was not created: {e}") from e

        booking_data = BookingCreate(
            user_id=str(chat_id),
            client_name=session.name,
            telegram_username=session.username or "",
            appointment_date=session.date,
            appointment_time=start.time(),
            service=s.service_name,
            price=s.service_price,
            duration_minutes=s.service_duration,
            calendar_event_id=event_id,
        )

        try:
            return await self.store.create_booking(booking_data)
        except DatabaseError as e:
            await self._discard_event(event_id)
            raise BookingCreationError(f"Booking was not saved: {e}") from e

    async def _discard_event(self, event_id: str) -> None:
        """Remove the event of a booking that failed to save."""
        try:
            await self.calendar.delete_event(event_id)
        except CalendarError as e:
            logger.error(f"Orphaned calendar event {event_id} left behind: {e}")
