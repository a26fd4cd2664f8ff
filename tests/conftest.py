"""
Pytest configuration and shared fixtures.
"""

from datetime import date, datetime, time
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from aiogram.fsm.storage.memory import MemoryStorage

from bot.session import SessionStore
from bot.wizard import BookingWizard
from config import Settings
from gcal import GoogleCalendarClient
from models.booking import Booking, BookingStatus

TZ = ZoneInfo("Europe/Moscow")


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def test_settings():
    """Settings built from explicit values, ignoring any local .env."""
    return Settings(
        _env_file=None,
        telegram_bot_token="123456:TEST_TOKEN",
        admin_telegram_id=999,
        timezone="Europe/Moscow",
        service_name="Personal Training",
        service_price="2500",
        service_currency="₽",
        service_duration=60,
        work_start_hour=9,
        work_end_hour=18,
        slot_duration=60,
        buffer_time=0,
        google_calendar_id="calendar@example.com",
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
    )


@pytest.fixture(autouse=True)
def mock_settings(test_settings):
    """Point handler modules at the test settings."""
    with patch("bot.handlers.settings", test_settings), patch(
        "bot.admin_handlers.settings", test_settings
    ):
        yield test_settings


@pytest.fixture
def now():
    """Fixed clock: 15 January 2026, 08:00 Moscow time."""
    return datetime(2026, 1, 15, 8, 0, tzinfo=TZ)


@pytest.fixture
def booking_day():
    return date(2026, 1, 15)


@pytest.fixture
def session_store():
    return SessionStore(MemoryStorage(), bot_id=123456)


@pytest.fixture
def mock_calendar():
    """Mock Google Calendar gateway."""
    calendar = MagicMock()
    calendar.list_busy_intervals = AsyncMock(return_value=[])
    calendar.create_event = AsyncMock(return_value="event_123")
    calendar.delete_event = AsyncMock(return_value=True)
    return calendar


@pytest.fixture
def mock_store():
    """Mock booking store."""
    store = MagicMock()
    store.create_booking = AsyncMock()
    store.get_booking_by_id = AsyncMock(return_value=None)
    store.get_bookings_by_user = AsyncMock(return_value=[])
    store.list_bookings = AsyncMock(return_value=[])
    store.cancel_booking = AsyncMock()
    store.mark_reminder_sent = AsyncMock()
    store.get_bookings_for_reminder = AsyncMock(return_value=[])
    return store


@pytest.fixture
def wizard(session_store, mock_calendar, mock_store, test_settings, now):
    return BookingWizard(
        session_store, mock_calendar, mock_store, test_settings, clock=lambda: now
    )


@pytest.fixture
def calendar_service():
    """Mock googleapiclient Calendar service resource."""
    return MagicMock()


@pytest.fixture
def gateway_wizard(session_store, calendar_service, mock_store, test_settings, now):
    """Wizard over the real calendar gateway with a mocked Google service."""
    calendar = GoogleCalendarClient(calendar_service, "calendar@example.com", TZ)
    return BookingWizard(
        session_store, calendar, mock_store, test_settings, clock=lambda: now
    )


@pytest.fixture
def booking_factory():
    """Build Booking objects with sensible defaults."""

    def _make(**overrides) -> Booking:
        data = {
            "id": "b7c1e2d4-0000-4000-8000-00000a1b2c3d",
            "user_id": "111",
            "client_name": "Anna",
            "telegram_username": "anna",
            "appointment_date": date(2026, 1, 16),
            "appointment_time": time(10, 0),
            "service": "Personal Training",
            "price": "2500",
            "duration_minutes": 60,
            "status": BookingStatus.CONFIRMED,
            "calendar_event_id": "event_123",
        }
        data.update(overrides)
        return Booking(**data)

    return _make
