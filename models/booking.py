"""Booking models for appointments."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

from utils.constants import BOOKING_ID_DISPLAY_LENGTH


class BookingStatus(str, Enum):
    """Booking status."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    """Booking record as stored in the bookings table."""

    id: Optional[str] = None
    user_id: str = Field(..., description="Telegram chat ID of the client")
    client_name: str
    telegram_username: str = ""
    appointment_date: date
    appointment_time: time
    service: str
    price: str
    duration_minutes: int = Field(..., gt=0)
    status: BookingStatus = BookingStatus.CONFIRMED
    calendar_event_id: Optional[str] = None
    reminder_sent: bool = Field(default=False)
    reminder_sent_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "123456789",
                "client_name": "Anna",
                "telegram_username": "anna",
                "appointment_date": "2026-01-15",
                "appointment_time": "10:00",
                "service": "Personal Training",
                "price": "2500",
                "duration_minutes": 60,
                "status": "confirmed",
                "calendar_event_id": "abc123",
            }
        }
    )

    @property
    def short_id(self) -> str:
        """Trailing part of the ID shown to clients."""
        return (self.id or "")[-BOOKING_ID_DISPLAY_LENGTH:]

    def starts_at(self, tz: ZoneInfo) -> datetime:
        """Appointment start in the business timezone."""
        return datetime.combine(self.appointment_date, self.appointment_time, tzinfo=tz)


class BookingCreate(BaseModel):
    """Booking creation model."""

    user_id: str
    client_name: str
    telegram_username: str = ""
    appointment_date: date
    appointment_time: time
    service: str
    price: str
    duration_minutes: int
    status: BookingStatus = BookingStatus.CONFIRMED
    calendar_event_id: Optional[str] = None
