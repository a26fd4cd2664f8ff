"""
Google Calendar client.
Supplies busy intervals for availability and manages booking events.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from availability import busy_interval_from_bounds
from models.slot import TimeInterval
from utils.constants import EMAIL_REMINDER_MINUTES, POPUP_REMINDER_MINUTES
from utils.exceptions import CalendarError, CalendarEventNotFoundError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Statuses Google returns for events that no longer exist
_GONE_STATUSES = (404, 410)

# Network, timeout and credential refresh failures raised by the transport
_TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, GoogleAuthError)


class GoogleCalendarClient:
    """
    Thin async wrapper around the Calendar v3 events resource.

    googleapiclient is synchronous, so every request is executed in a worker
    thread to keep the bot's event loop responsive.
    """

    def __init__(
        self,
        service: Any,
        calendar_id: str,
        timezone: ZoneInfo,
        default_duration: int = 60,
    ):
        self.service = service
        self.calendar_id = calendar_id
        self.timezone = timezone
        self.default_duration = default_duration

    @classmethod
    def from_service_account_file(
        cls,
        credentials_path: str,
        calendar_id: str,
        timezone: ZoneInfo,
        default_duration: int = 60,
    ) -> "GoogleCalendarClient":
        """Build a client authorised with a service-account key file."""
        try:
            credentials = service_account.Credentials.from_service_account_file(
                credentials_path, scopes=SCOPES
            )
        except (OSError, ValueError) as e:
            raise CalendarError(
                f"Cannot load calendar credentials from {credentials_path}: {e}"
            ) from e

        try:
            service = build(
                "calendar", "v3", credentials=credentials, cache_discovery=False
            )
        except _TRANSPORT_ERRORS as e:
            raise CalendarError(f"Cannot build Google Calendar service: {e}") from e

        logger.info("Google Calendar API initialised")
        return cls(service, calendar_id, timezone, default_duration)

    async def _execute(self, request: Any) -> Dict[str, Any]:
        """
        Run a request in a worker thread.

        HttpError is left to the caller, which knows what a 404 means for
        its operation. Transport failures become CalendarError here.
        """
        try:
            return await asyncio.to_thread(request.execute)
        except _TRANSPORT_ERRORS as e:
            logger.error(f"Google Calendar request failed: {e!r}", exc_info=True)
            raise CalendarError(f"Google Calendar unavailable: {e!r}") from e

    # ========== Queries ==========

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        calendar_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List single events between time_min and time_max, ordered by start."""
        events: List[Dict[str, Any]] = []
        page_token = None

        try:
            while True:
                request = self.service.events().list(
                    calendarId=calendar_id or self.calendar_id,
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                )
                response = await self._execute(request)
                events.extend(response.get("items", []))

                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as e:
            logger.error(f"Failed to list calendar events: {e}", exc_info=True)
            raise CalendarError(f"Failed to list calendar events: {e}") from e

        return events

    async def list_busy_intervals(
        self,
        time_min: datetime,
        time_max: datetime,
        calendar_id: Optional[str] = None,
    ) -> List[TimeInterval]:
        """Return occupied intervals between time_min and time_max."""
        events = await self.list_events(time_min, time_max, calendar_id)

        intervals = []
        for event in events:
            interval = self._event_interval(event)
            if interval is not None:
                intervals.append(interval)

        return intervals

    def _event_interval(self, event: Dict[str, Any]) -> Optional[TimeInterval]:
        start = _parse_event_time(event.get("start", {}))
        end = _parse_event_time(event.get("end", {}))

        if start is None or end is None:
            logger.warning(f"Skipping calendar event without bounds: {event.get('id')}")
            return None

        try:
            return busy_interval_from_bounds(start, end, self.timezone)
        except ValueError:
            logger.warning(f"Skipping calendar event with empty range: {event.get('id')}")
            return None

    async def get_event(self, event_id: str) -> Dict[str, Any]:
        """
        Fetch a single event.

        Raises:
            CalendarEventNotFoundError: If the event does not exist
            CalendarError: On any other API failure
        """
        try:
            return await self._execute(
                self.service.events().get(calendarId=self.calendar_id, eventId=event_id)
            )
        except HttpError as e:
            if e.resp.status in _GONE_STATUSES:
                raise CalendarEventNotFoundError(f"Event {event_id} not found") from e
            logger.error(f"Failed to get calendar event {event_id}: {e}", exc_info=True)
            raise CalendarError(f"Failed to get calendar event: {e}") from e

    # ========== Mutations ==========

    def _event_times(self, start: datetime, duration_minutes: int) -> Dict[str, Any]:
        end = start + timedelta(minutes=duration_minutes)
        return {
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone.key},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone.key},
        }

    async def create_event(
        self,
        summary: str,
        description: str,
        start: datetime,
        duration_minutes: int,
    ) -> str:
        """
        Create a booking event with email and popup reminders.

        Returns:
            The new event ID
        """
        body = {
            "summary": summary,
            "description": description,
            **self._event_times(start, duration_minutes),
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": EMAIL_REMINDER_MINUTES},
                    {"method": "popup", "minutes": POPUP_REMINDER_MINUTES},
                ],
            },
        }

        try:
            event = await self._execute(
                self.service.events().insert(calendarId=self.calendar_id, body=body)
            )
        except HttpError as e:
            logger.error(f"Failed to create calendar event: {e}", exc_info=True)
            raise CalendarError(f"Failed to create calendar event: {e}") from e

        logger.info(f"Calendar event created: {event['id']}")
        return event["id"]

    async def update_event(
        self,
        event_id: str,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        start: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Apply changes to an existing event (read-modify-write)."""
        event = await self.get_event(event_id)

        if summary:
            event["summary"] = summary
        if description:
            event["description"] = description
        if start:
            event.update(self._event_times(start, duration_minutes or self.default_duration))

        try:
            updated = await self._execute(
                self.service.events().update(
                    calendarId=self.calendar_id, eventId=event_id, body=event
                )
            )
        except HttpError as e:
            logger.error(f"Failed to update calendar event {event_id}: {e}", exc_info=True)
            raise CalendarError(f"Failed to update calendar event: {e}") from e

        logger.info(f"Calendar event updated: {event_id}")
        return updated

    async def delete_event(self, event_id: str) -> bool:
        """
        Delete an event.

        Returns:
            True if deleted, False if the event was already gone
        """
        try:
            await self._execute(
                self.service.events().delete(calendarId=self.calendar_id, eventId=event_id)
            )
        except HttpError as e:
            if e.resp.status in _GONE_STATUSES:
                logger.info(f"Calendar event {event_id} already removed")
                return False
            logger.error(f"Failed to delete calendar event {event_id}: {e}", exc_info=True)
            raise CalendarError(f"Failed to delete calendar event: {e}") from e

        logger.info(f"Calendar event deleted: {event_id}")
        return True


def _parse_event_time(bound: Dict[str, Any]):
    """Read an event start/end: dateTime for timed events, date for all-day ones."""
    if bound.get("dateTime"):
        return datetime.fromisoformat(bound["dateTime"].replace("Z", "+00:00"))
    if bound.get("date"):
        return date.fromisoformat(bound["date"])
    return None
