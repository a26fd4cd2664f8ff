"""
Supabase booking store.
Durable record of confirmed and cancelled bookings in the `bookings` table.

Expected table layout (SQL):
----------------------------
CREATE TABLE bookings (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id text NOT NULL,
    client_name text NOT NULL,
    telegram_username text DEFAULT '',
    appointment_date date NOT NULL,
    appointment_time time NOT NULL,
    service text NOT NULL,
    price text NOT NULL,
    duration_minutes integer NOT NULL,
    status text NOT NULL DEFAULT 'confirmed',
    calendar_event_id text,
    reminder_sent boolean DEFAULT false,
    reminder_sent_at timestamptz,
    cancelled_at timestamptz,
    created_at timestamptz DEFAULT now(),
    updated_at timestamptz DEFAULT now()
);
CREATE INDEX bookings_user_id_idx ON bookings (user_id);
CREATE INDEX bookings_date_status_idx ON bookings (appointment_date, status);
"""

import logging
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import ValidationError
from supabase import Client as SupabaseClientType
from supabase import create_client

from models.booking import Booking, BookingCreate, BookingStatus
from utils.datetime_utils import parse_iso_datetime, to_iso_string, utc_now
from utils.exceptions import BookingNotFoundError, DatabaseError

logger = logging.getLogger(__name__)

TABLE = "bookings"


class SupabaseClient:
    """
    Supabase booking store.

    Takes an already constructed supabase client so the bot can build it
    once at startup (and tests can pass a mock).
    """

    def __init__(self, client: SupabaseClientType):
        self.client = client

    @classmethod
    def from_credentials(cls, url: str, key: str) -> "SupabaseClient":
        """Create the store from project URL and service key."""
        return cls(create_client(url, key))

    # ========== Writes ==========

    async def create_booking(self, booking_data: BookingCreate) -> Booking:
        """Insert a booking; the store generates its ID."""
        try:
            data = booking_data.model_dump(mode="json", exclude_none=True)
            now = to_iso_string(utc_now())
            data["created_at"] = now
            data["updated_at"] = now

            response = self.client.table(TABLE).insert(data).execute()

            if not response.data:
                raise ValueError("no data returned")

            booking = self._parse_booking(response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to create booking: {e}") from e

        logger.info(f"Booking created: {booking.id}")
        return booking

    async def cancel_booking(self, booking_id: str) -> Booking:
        """
        Mark a booking as cancelled.

        Raises:
            BookingNotFoundError: If no booking has this ID
        """
        now = to_iso_string(utc_now())
        booking = await self._update(
            booking_id,
            {
                "status": BookingStatus.CANCELLED.value,
                "cancelled_at": now,
                "updated_at": now,
            },
        )
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        logger.info(f"Booking cancelled: {booking_id}")
        return booking

    async def mark_reminder_sent(self, booking_id: str) -> Optional[Booking]:
        """Mark reminder as sent for a booking."""
        now = to_iso_string(utc_now())
        return await self._update(
            booking_id,
            {
                "reminder_sent": True,
                "reminder_sent_at": now,
                "updated_at": now,
            },
        )

    async def _update(self, booking_id: str, update_data: dict) -> Optional[Booking]:
        try:
            response = (
                self.client.table(TABLE)
                .update(update_data)
                .eq("id", booking_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update booking {booking_id}: {e}") from e

        if not response.data:
            return None

        return self._parse_booking(response.data[0])

    # ========== Reads ==========

    async def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        """Get booking by ID."""
        try:
            response = (
                self.client.table(TABLE).select("*").eq("id", booking_id).execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get booking: {e}") from e

        if response.data:
            return self._parse_booking(response.data[0])
        return None

    async def get_bookings_by_user(self, user_id: str) -> List[Booking]:
        """Get all bookings of a user, newest appointment first."""
        try:
            response = (
                self.client.table(TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("appointment_date", desc=True)
                .order("appointment_time", desc=True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get bookings: {e}") from e

        return [self._parse_booking(item) for item in response.data]

    async def list_bookings(
        self,
        on_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """List bookings, optionally filtered by appointment date and status."""
        try:
            query = self.client.table(TABLE).select("*")

            if on_date:
                query = query.eq("appointment_date", on_date.isoformat())
            if status:
                query = query.eq("status", status.value)

            response = (
                query.order("appointment_date").order("appointment_time").execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list bookings: {e}") from e

        return [self._parse_booking(item) for item in response.data]

    async def get_bookings_for_reminder(
        self, window_start: datetime, window_end: datetime
    ) -> List[Booking]:
        """
        Get confirmed bookings without a reminder whose start falls in the window.

        The date range narrows the query; the exact start check happens here
        because appointment date and time are stored separately.
        """
        tz = window_start.tzinfo
        try:
            response = (
                self.client.table(TABLE)
                .select("*")
                .eq("status", BookingStatus.CONFIRMED.value)
                .eq("reminder_sent", False)
                .gte("appointment_date", window_start.date().isoformat())
                .lte("appointment_date", window_end.date().isoformat())
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get bookings for reminder: {e}") from e

        bookings = []
        for item in response.data:
            booking = self._parse_booking(item)
            if window_start <= booking.starts_at(tz) <= window_end:
                bookings.append(booking)

        return bookings

    # ========== Helper Methods ==========

    def _parse_booking(self, item: dict[str, Any]) -> Booking:
        """
        Parse booking data from database response.

        Args:
            item: Raw booking row

        Returns:
            Parsed Booking object

        Raises:
            DatabaseError: If the row does not match the booking schema
        """
        item = item.copy()
        try:
            for field in ["reminder_sent_at", "cancelled_at", "created_at", "updated_at"]:
                if item.get(field):
                    item[field] = parse_iso_datetime(item[field])
            return Booking(**item)
        except (ValidationError, ValueError) as e:
            raise DatabaseError(f"Malformed booking row {item.get('id')}: {e}") from e
