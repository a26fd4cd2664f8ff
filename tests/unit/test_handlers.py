"""
Unit tests for bot handlers.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import User

from bot.cancellation import CancellationService
from bot.handlers import (
    SESSION_EXPIRED_TEXT,
    STALE_BUTTON_TEXT,
    back_to_date,
    cancel_selected_booking,
    cmd_book,
    cmd_cancel,
    cmd_help,
    cmd_my_bookings,
    cmd_start,
    confirm_booking,
    decline_booking,
    handle_text,
    select_date,
    select_time,
)
from bot.states import WizardStep
from models.booking import BookingStatus
from utils.exceptions import (
    BookingCreationError,
    BookingNotFoundError,
    CalendarError,
    DatabaseError,
    InvalidTransitionError,
)

CHAT_ID = 111


def make_message(text: str = "", chat_id: int = CHAT_ID):
    user = User(id=chat_id, is_bot=False, first_name="Anna", username="anna")
    message = MagicMock()
    message.text = text
    message.message_id = 1
    message.chat.id = chat_id
    message.from_user = user
    message.answer = AsyncMock()
    message.delete = AsyncMock()
    return message


def make_callback(data: str, chat_id: int = CHAT_ID):
    callback = MagicMock()
    callback.data = data
    callback.message = make_message(chat_id=chat_id)
    callback.answer = AsyncMock()
    return callback


def answer_text(message) -> str:
    return message.answer.call_args.args[0]


@pytest.fixture
def mock_bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


@pytest.fixture
def mock_wizard():
    wizard = MagicMock()
    for method in (
        "start",
        "choose_date",
        "choose_time",
        "back_to_date",
        "enter_name",
        "decline",
        "confirm",
    ):
        setattr(wizard, method, AsyncMock())
    return wizard


@pytest.fixture
def mock_cancellation():
    cancellation = MagicMock()
    cancellation.upcoming_bookings = AsyncMock(return_value=[])
    cancellation.cancel = AsyncMock()
    return cancellation


class TestCommands:
    """Test plain commands."""

    @pytest.mark.asyncio
    async def test_start(self):
        message = make_message("/start")

        await cmd_start(message)

        text = answer_text(message)
        assert "Anna" in text
        assert "Personal Training" in text
        assert "2500₽" in text
        assert "/book" in text

    @pytest.mark.asyncio
    async def test_help(self):
        message = make_message("/help")

        await cmd_help(message)

        assert "/my_bookings" in answer_text(message)

    @pytest.mark.asyncio
    async def test_book_starts_session_and_offers_dates(self, mock_wizard):
        message = make_message("/book")

        await cmd_book(message, mock_wizard)

        mock_wizard.start.assert_awaited_once_with(CHAT_ID, "anna")
        keyboard = message.answer.call_args.kwargs["reply_markup"]
        buttons = [row[0] for row in keyboard.inline_keyboard]
        assert len(buttons) == 7
        assert buttons[0].text == "🔥 Today"
        assert buttons[1].text == "📆 Tomorrow"
        assert all(b.callback_data.startswith("date_") for b in buttons)


class TestDateSelection:
    """Test date callback handling."""

    @pytest.mark.asyncio
    async def test_invalid_date(self, mock_wizard):
        callback = make_callback("date_not-a-date")

        await select_date(callback, mock_wizard)

        callback.answer.assert_awaited_once_with("Invalid date", show_alert=True)
        mock_wizard.choose_date.assert_not_called()

    @pytest.mark.asyncio
    async def test_calendar_error(self, mock_wizard):
        mock_wizard.choose_date.side_effect = CalendarError("unavailable")
        callback = make_callback("date_2026-01-15")

        await select_date(callback, mock_wizard)

        assert "error occurred" in answer_text(callback.message)

    @pytest.mark.asyncio
    async def test_no_slots(self, mock_wizard):
        mock_wizard.choose_date.return_value = []
        callback = make_callback("date_2026-01-15")

        await select_date(callback, mock_wizard)

        assert "no free slots" in answer_text(callback.message)

    @pytest.mark.asyncio
    async def test_stale_button(self, mock_wizard):
        mock_wizard.choose_date.side_effect = InvalidTransitionError("choose_time", "date_chosen")
        callback = make_callback("date_2026-01-15")

        await select_date(callback, mock_wizard)

        callback.answer.assert_awaited_once_with(STALE_BUTTON_TEXT)
        callback.message.answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_failure_is_tolerated(self, wizard):
        await wizard.start(CHAT_ID)
        callback = make_callback("date_2026-01-15")
        callback.message.delete.side_effect = TelegramBadRequest(
            method=MagicMock(), message="message to delete not found"
        )

        await select_date(callback, wizard)

        callback.message.answer.assert_awaited_once()


class TestWizardFlow:
    """Drive the real wizard through the handlers."""

    @pytest.mark.asyncio
    async def test_full_booking(
        self,
        wizard,
        session_store,
        mock_calendar,
        mock_store,
        mock_bot,
        booking_factory,
        booking_day,
    ):
        mock_store.create_booking.return_value = booking_factory(appointment_date=booking_day)

        await cmd_book(make_message("/book"), wizard)

        callback = make_callback("date_2026-01-15")
        await select_date(callback, wizard)
        keyboard = callback.message.answer.call_args.kwargs["reply_markup"]
        values = [row[0].callback_data for row in keyboard.inline_keyboard]
        assert values[0] == "time_09:00"
        assert values[-1] == "back_to_date"
        assert len(values) == 10

        callback = make_callback("time_10:00")
        await select_time(callback, wizard)
        assert "What is your name" in answer_text(callback.message)

        message = make_message("Anna")
        await handle_text(message, wizard)
        summary = answer_text(message)
        assert "Anna" in summary
        assert "10:00" in summary
        assert (await session_store.get(CHAT_ID)).step == WizardStep.CONFIRM

        callback = make_callback("confirm_yes")
        await confirm_booking(callback, mock_bot, wizard)

        callback.answer.assert_awaited_once_with("Booking created")
        confirmation = answer_text(callback.message)
        assert "Booking confirmed" in confirmation
        assert "#1b2c3d" in confirmation
        mock_calendar.create_event.assert_awaited_once()
        mock_store.create_booking.assert_awaited_once()
        mock_bot.send_message.assert_awaited_once()
        assert mock_bot.send_message.call_args.args[0] == 999
        assert await session_store.get(CHAT_ID) is None

    @pytest.mark.asyncio
    async def test_short_name_reprompts(self, wizard, session_store):
        await cmd_book(make_message("/book"), wizard)
        await select_date(make_callback("date_2026-01-15"), wizard)
        await select_time(make_callback("time_10:00"), wizard)

        message = make_message("A")
        await handle_text(message, wizard)

        assert "at least 2 characters" in answer_text(message)
        assert (await session_store.get(CHAT_ID)).step == WizardStep.ENTER_NAME

    @pytest.mark.asyncio
    async def test_text_without_session_ignored(self, wizard):
        message = make_message("hello")

        await handle_text(message, wizard)

        message.answer.assert_not_called()

    @pytest.mark.asyncio
    async def test_back_to_date(self, wizard, session_store):
        await cmd_book(make_message("/book"), wizard)
        await select_date(make_callback("date_2026-01-15"), wizard)

        callback = make_callback("back_to_date")
        await back_to_date(callback, wizard)

        assert "Choose a date" in answer_text(callback.message)
        assert (await session_store.get(CHAT_ID)).step == WizardStep.CHOOSE_DATE

    @pytest.mark.asyncio
    async def test_confirm_after_session_expired(self, wizard, mock_bot):
        callback = make_callback("confirm_yes")

        await confirm_booking(callback, mock_bot, wizard)

        callback.answer.assert_awaited_once_with(SESSION_EXPIRED_TEXT)
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_confirm_failure(self, mock_wizard, mock_bot):
        mock_wizard.confirm.side_effect = BookingCreationError("calendar down")
        callback = make_callback("confirm_yes")

        await confirm_booking(callback, mock_bot, mock_wizard)

        assert "error occurred while creating" in answer_text(callback.message)
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_notification_failure_ignored(
        self, mock_wizard, mock_bot, booking_factory
    ):
        mock_wizard.confirm.return_value = booking_factory()
        mock_bot.send_message.side_effect = TelegramBadRequest(
            method=MagicMock(), message="chat not found"
        )
        callback = make_callback("confirm_yes")

        await confirm_booking(callback, mock_bot, mock_wizard)

        assert "Booking confirmed" in answer_text(callback.message)

    @pytest.mark.asyncio
    async def test_decline(self, mock_wizard):
        callback = make_callback("confirm_no")

        await decline_booking(callback, mock_wizard)

        mock_wizard.decline.assert_awaited_once_with(CHAT_ID)
        assert "Booking cancelled" in answer_text(callback.message)


class TestCalendarOutage:
    """Gateway failures other than API errors still reach the user."""

    @pytest.mark.asyncio
    async def test_timeout_on_date_selection(
        self, gateway_wizard, calendar_service, session_store
    ):
        calendar_service.events.return_value.list.return_value.execute.side_effect = (
            TimeoutError("timed out")
        )
        await cmd_book(make_message("/book"), gateway_wizard)
        callback = make_callback("date_2026-01-15")

        await select_date(callback, gateway_wizard)

        callback.answer.assert_awaited_once()
        assert "error occurred while loading free slots" in answer_text(callback.message)
        assert await session_store.get(CHAT_ID) is None

    @pytest.mark.asyncio
    async def test_timeout_on_confirmation(
        self, gateway_wizard, calendar_service, session_store, mock_bot
    ):
        calendar_service.events.return_value.list.return_value.execute.return_value = {
            "items": []
        }
        calendar_service.events.return_value.insert.return_value.execute.side_effect = (
            TimeoutError("timed out")
        )
        await cmd_book(make_message("/book"), gateway_wizard)
        await select_date(make_callback("date_2026-01-15"), gateway_wizard)
        await select_time(make_callback("time_10:00"), gateway_wizard)
        await handle_text(make_message("Anna"), gateway_wizard)
        callback = make_callback("confirm_yes")

        await confirm_booking(callback, mock_bot, gateway_wizard)

        callback.answer.assert_awaited_once()
        assert "error occurred while creating your booking" in answer_text(callback.message)
        mock_bot.send_message.assert_not_called()
        assert await session_store.get(CHAT_ID) is None


class TestCancellation:
    """Test /my_bookings, /cancel and the cancel buttons."""

    @pytest.fixture
    def cancellation(self, mock_calendar, mock_store, test_settings, now):
        return CancellationService(
            mock_calendar, mock_store, test_settings, clock=lambda: now
        )

    @pytest.mark.asyncio
    async def test_my_bookings_none_yet(self, cancellation, mock_store):
        message = make_message("/my_bookings")

        await cmd_my_bookings(message, cancellation)

        assert "no bookings yet" in answer_text(message)
        mock_store.get_bookings_by_user.assert_awaited_once_with("111")

    @pytest.mark.asyncio
    async def test_my_bookings_none_upcoming(self, cancellation, mock_store, booking_factory):
        mock_store.get_bookings_by_user.return_value = [
            booking_factory(status=BookingStatus.CANCELLED),
            booking_factory(id="past", appointment_date=date(2026, 1, 10)),
        ]
        message = make_message("/my_bookings")

        await cmd_my_bookings(message, cancellation)

        assert "no upcoming bookings" in answer_text(message)

    @pytest.mark.asyncio
    async def test_my_bookings_list(self, cancellation, mock_store, booking_factory):
        mock_store.get_bookings_by_user.return_value = [booking_factory()]
        message = make_message("/my_bookings")

        await cmd_my_bookings(message, cancellation)

        text = answer_text(message)
        assert "1. 📅 16 Jan ⏰ 10:00" in text
        assert "#1b2c3d" in text

    @pytest.mark.asyncio
    async def test_my_bookings_store_error(self, cancellation, mock_store):
        mock_store.get_bookings_by_user.side_effect = DatabaseError("down")
        message = make_message("/my_bookings")

        await cmd_my_bookings(message, cancellation)

        assert "error occurred" in answer_text(message)

    @pytest.mark.asyncio
    async def test_cancel_nothing_to_cancel(self, mock_cancellation):
        message = make_message("/cancel")

        await cmd_cancel(message, mock_cancellation)

        assert answer_text(message) == "📋 You have no bookings to cancel."

    @pytest.mark.asyncio
    async def test_cancel_offers_buttons(self, mock_cancellation, booking_factory):
        mock_cancellation.upcoming_bookings.return_value = [booking_factory()]
        message = make_message("/cancel")

        await cmd_cancel(message, mock_cancellation)

        keyboard = message.answer.call_args.kwargs["reply_markup"]
        button = keyboard.inline_keyboard[0][0]
        assert button.callback_data == "cancel_b7c1e2d4-0000-4000-8000-00000a1b2c3d"
        assert button.text == "16 Jan 10:00 - Personal Training"

    @pytest.mark.asyncio
    async def test_cancel_selected(
        self, mock_calendar, mock_store, test_settings, now, mock_bot, booking_factory
    ):
        cancellation = CancellationService(
            mock_calendar, mock_store, test_settings, clock=lambda: now
        )
        mock_store.get_booking_by_id.return_value = booking_factory()
        mock_store.cancel_booking.return_value = booking_factory(
            status=BookingStatus.CANCELLED
        )
        callback = make_callback("cancel_b7c1e2d4-0000-4000-8000-00000a1b2c3d")

        await cancel_selected_booking(callback, mock_bot, cancellation)

        callback.answer.assert_awaited_once_with("Booking cancelled")
        assert "Booking cancelled" in answer_text(callback.message)
        mock_calendar.delete_event.assert_awaited_once_with("event_123")
        mock_store.cancel_booking.assert_awaited_once_with(
            "b7c1e2d4-0000-4000-8000-00000a1b2c3d"
        )
        assert mock_bot.send_message.call_args.args[0] == 999

    @pytest.mark.asyncio
    async def test_cancel_selected_not_found(self, mock_cancellation, mock_bot):
        mock_cancellation.cancel.side_effect = BookingNotFoundError("missing")
        callback = make_callback("cancel_missing")

        await cancel_selected_booking(callback, mock_bot, mock_cancellation)

        callback.answer.assert_awaited_once_with("Booking not found")
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_selected_store_error(self, mock_cancellation, mock_bot):
        mock_cancellation.cancel.side_effect = DatabaseError("down")
        callback = make_callback("cancel_b7c1e2d4-0000-4000-8000-00000a1b2c3d")

        await cancel_selected_booking(callback, mock_bot, mock_cancellation)

        callback.answer.assert_awaited_once_with("An error occurred", show_alert=True)

