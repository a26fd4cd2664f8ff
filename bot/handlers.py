"""
Bot handlers for the BookingPro Telegram bot.
Handles commands, the booking wizard and cancellations.
"""

import logging
from html import escape

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message

from bot.cancellation import CancellationService
from bot.keyboards import (
    get_cancel_bookings_keyboard,
    get_confirm_booking_keyboard,
    get_dates_keyboard,
    get_slots_keyboard,
)
from bot.session import BookingSession
from bot.wizard import BookingWizard
from config import settings
from models.booking import Booking
from utils.constants import DATE_LABEL_FORMAT, DATE_PICKER_DAYS, MIN_NAME_LENGTH
from utils.datetime_utils import (
    combine_local,
    local_now,
    parse_date_value,
    parse_time_value,
    upcoming_dates,
)
from utils.exceptions import (
    BookingCreationError,
    BookingNotFoundError,
    CalendarError,
    DatabaseError,
    InvalidNameError,
    InvalidTransitionError,
    WizardError,
)

logger = logging.getLogger(__name__)

router = Router()

SESSION_EXPIRED_TEXT = "This booking session has expired. Start again: /book"
STALE_BUTTON_TEXT = "This button is no longer active."


def _price() -> str:
    return f"{settings.service_price}{settings.service_currency}"


def _session_start(session: BookingSession):
    return combine_local(session.date, parse_time_value(session.time), settings.tz)


async def _delete_message(message: Message) -> None:
    """Remove a wizard message; failures only matter for the log."""
    try:
        await message.delete()
    except TelegramAPIError as e:
        logger.warning(f"Failed to delete message {message.message_id}: {e}")


async def _notify_admin(bot: Bot, text: str) -> None:
    if not settings.admin_telegram_id:
        logger.warning("Admin Telegram ID not configured, notification skipped")
        return
    try:
        await bot.send_message(settings.admin_telegram_id, text)
    except TelegramAPIError as e:
        logger.warning(f"Failed to notify admin: {e}")


async def _answer_wizard_error(callback: CallbackQuery, error: WizardError) -> None:
    if isinstance(error, InvalidTransitionError):
        await callback.answer(STALE_BUTTON_TEXT)
    else:
        await callback.answer(SESSION_EXPIRED_TEXT)


# ========== Start & Help ==========


@router.message(CommandStart())
async def cmd_start(message: Message):
    """Handle /start command."""
    first_name = escape(message.from_user.first_name or "friend")

    await message.answer(
        f"👋 Hi, {first_name}!\n\n"
        f"Welcome to <b>BookingPro</b>, your personal assistant for booking sessions!\n\n"
        f"📋 <b>Available commands:</b>\n\n"
        f"/book - Book a session\n"
        f"/my_bookings - My bookings\n"
        f"/cancel - Cancel a booking\n"
        f"/help - Help\n\n"
        f"💪 <b>Our service:</b>\n"
        f"{escape(settings.service_name)}\n"
        f"⏱ Duration: {settings.service_duration} minutes\n"
        f"💰 Price: {_price()}\n\n"
        f"Tap /book to make a booking!"
    )


@router.message(Command("help"))
async def cmd_help(message: Message):
    """Handle /help command."""
    await message.answer(
        "ℹ️ <b>How to use the bot:</b>\n\n"
        "1️⃣ <b>Book</b> - tap /book\n"
        "2️⃣ Choose a <b>date</b>\n"
        "3️⃣ Choose a <b>time</b> from the free slots\n"
        "4️⃣ Enter your <b>name</b>\n"
        "5️⃣ Confirm the booking\n\n"
        "You will receive a confirmation and a reminder the day before "
        "your session!\n\n"
        "📋 <b>Other commands:</b>\n"
        "/my_bookings - view your bookings\n"
        "/cancel - cancel a booking\n\n"
        "❓ <b>Questions?</b>\n"
        f"Write to us: @{escape(settings.support_username)}"
    )


# ========== Booking Wizard ==========


async def send_date_selection(message: Message) -> None:
    today = local_now(settings.tz).date()
    dates = upcoming_dates(today, DATE_PICKER_DAYS)

    await message.answer(
        "📅 <b>Choose a date for your booking:</b>",
        reply_markup=get_dates_keyboard(dates, today),
    )


@router.message(Command("book"))
async def cmd_book(message: Message, wizard: BookingWizard):
    """Start booking flow."""
    await wizard.start(message.chat.id, message.from_user.username)
    await send_date_selection(message)


@router.callback_query(lambda c: c.data.startswith("date_"))
async def select_date(callback: CallbackQuery, wizard: BookingWizard):
    """Handle date selection."""
    try:
        day = parse_date_value(callback.data.removeprefix("date_"))
    except ValueError:
        await callback.answer("Invalid date", show_alert=True)
        return

    chat_id = callback.message.chat.id
    try:
        slots = await wizard.choose_date(chat_id, day)
    except WizardError as e:
        await _answer_wizard_error(callback, e)
        return
    except CalendarError as e:
        logger.error(f"Failed to load slots for {day}: {e}", exc_info=True)
        await callback.answer()
        await callback.message.answer(
            "❌ An error occurred while loading free slots. Please try again later."
        )
        return

    await callback.answer()
    await _delete_message(callback.message)

    if not slots:
        await callback.message.answer(
            "😔 Unfortunately, there are no free slots on this date.\n\n"
            "Try another date: /book"
        )
        return

    await callback.message.answer(
        f"⏰ <b>Choose a time on {day.strftime(DATE_LABEL_FORMAT)}:</b>\n\n"
        f"✅ - free slots",
        reply_markup=get_slots_keyboard(slots),
    )


@router.callback_query(lambda c: c.data.startswith("time_"))
async def select_time(callback: CallbackQuery, wizard: BookingWizard):
    """Handle time selection."""
    try:
        await wizard.choose_time(
            callback.message.chat.id, callback.data.removeprefix("time_")
        )
    except WizardError as e:
        await _answer_wizard_error(callback, e)
        return
    except ValueError:
        await callback.answer("Invalid time", show_alert=True)
        return

    await callback.answer()
    await _delete_message(callback.message)
    await callback.message.answer("👤 <b>What is your name?</b>\n\nPlease type your name:")


@router.callback_query(lambda c: c.data == "back_to_date")
async def back_to_date(callback: CallbackQuery, wizard: BookingWizard):
    """Go back from time selection to date selection."""
    try:
        await wizard.back_to_date(callback.message.chat.id)
    except WizardError as e:
        await _answer_wizard_error(callback, e)
        return

    await callback.answer()
    await _delete_message(callback.message)
    await send_date_selection(callback.message)


@router.callback_query(lambda c: c.data == "confirm_yes")
async def confirm_booking(callback: CallbackQuery, bot: Bot, wizard: BookingWizard):
    """Create the booking."""
    chat_id = callback.message.chat.id
    try:
        booking = await wizard.confirm(chat_id)
    except WizardError as e:
        await _answer_wizard_error(callback, e)
        return
    except BookingCreationError as e:
        logger.error(f"Failed to create booking for chat {chat_id}: {e}", exc_info=True)
        await callback.answer()
        await _delete_message(callback.message)
        await callback.message.answer(
            "❌ An error occurred while creating your booking. "
            "Please try again later or contact support."
        )
        return

    await callback.answer("Booking created")
    await _delete_message(callback.message)

    starts_at = booking.starts_at(settings.tz)
    await callback.message.answer(
        f"🎉 <b>Booking confirmed!</b>\n\n"
        f"📋 Booking number: #{booking.short_id}\n\n"
        f"👤 Name: {escape(booking.client_name)}\n"
        f"📅 Date: {starts_at.strftime(DATE_LABEL_FORMAT)}\n"
        f"⏰ Time: {starts_at.strftime('%H:%M')}\n"
        f"💼 Service: {escape(booking.service)}\n"
        f"💰 Price: {_price()}\n\n"
        f"📍 The address will be sent to you the day before your session.\n\n"
        f"See you! 💪\n\n"
        f"<i>To cancel: /cancel</i>"
    )

    await _notify_admin(
        bot,
        f"🔔 <b>New booking!</b>\n\n"
        f"👤 Client: {escape(booking.client_name)}\n"
        f"📱 Telegram: @{escape(booking.telegram_username or 'not specified')}\n"
        f"🆔 ID: {chat_id}\n\n"
        f"📅 Date: {starts_at.strftime(DATE_LABEL_FORMAT)}\n"
        f"⏰ Time: {starts_at.strftime('%H:%M')}\n"
        f"💼 Service: {escape(booking.service)}\n"
        f"💰 Amount: {_price()}\n\n"
        f"📋 Booking ID: {booking.id}",
    )


@router.callback_query(lambda c: c.data == "confirm_no")
async def decline_booking(callback: CallbackQuery, wizard: BookingWizard):
    """Drop the booking without creating anything."""
    try:
        await wizard.decline(callback.message.chat.id)
    except WizardError as e:
        await _answer_wizard_error(callback, e)
        return

    await callback.answer()
    await _delete_message(callback.message)
    await callback.message.answer("❌ Booking cancelled.\n\nTo make a new booking: /book")


# ========== My Bookings & Cancellation ==========


def _booking_line(booking: Booking) -> str:
    starts_at = booking.starts_at(settings.tz)
    return f"📅 {starts_at.strftime('%d %b')} ⏰ {starts_at.strftime('%H:%M')}"


@router.message(Command("my_bookings"))
async def cmd_my_bookings(message: Message, cancellation: CancellationService):
    """Show user's upcoming bookings."""
    try:
        history = await cancellation.user_bookings(str(message.chat.id))
    except DatabaseError as e:
        logger.error(f"Failed to load bookings: {e}", exc_info=True)
        await message.answer("❌ An error occurred while loading your bookings.")
        return

    if not history:
        await message.answer("📋 You have no bookings yet.\n\nTo book: /book")
        return

    bookings = cancellation.upcoming(history)
    if not bookings:
        await message.answer("📋 You have no upcoming bookings.\n\nTo book: /book")
        return

    text = "📋 <b>Your bookings:</b>\n\n"
    for index, booking in enumerate(bookings, start=1):
        text += (
            f"{index}. {_booking_line(booking)}\n"
            f"   💼 {escape(booking.service)}\n"
            f"   📋 ID: #{booking.short_id}\n\n"
        )
    text += "<i>To cancel: /cancel</i>"

    await message.answer(text)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, cancellation: CancellationService):
    """Offer upcoming bookings for cancellation."""
    try:
        bookings = await cancellation.upcoming_bookings(str(message.chat.id))
    except DatabaseError as e:
        logger.error(f"Failed to load bookings: {e}", exc_info=True)
        await message.answer("❌ An error occurred while loading your bookings.")
        return

    if not bookings:
        await message.answer("📋 You have no bookings to cancel.")
        return

    await message.answer(
        "❌ <b>Choose a booking to cancel:</b>",
        reply_markup=get_cancel_bookings_keyboard(bookings, settings.tz),
    )


@router.callback_query(lambda c: c.data.startswith("cancel_"))
async def cancel_selected_booking(
    callback: CallbackQuery, bot: Bot, cancellation: CancellationService
):
    """Cancel the booking picked from the list."""
    booking_id = callback.data.removeprefix("cancel_")
    try:
        booking = await cancellation.cancel(str(callback.message.chat.id), booking_id)
    except BookingNotFoundError:
        await callback.answer("Booking not found")
        return
    except DatabaseError as e:
        logger.error(f"Failed to cancel booking {booking_id}: {e}", exc_info=True)
        await callback.answer("An error occurred", show_alert=True)
        return

    await callback.answer("Booking cancelled")
    await _delete_message(callback.message)

    await callback.message.answer(
        f"✅ Booking cancelled:\n\n{_booking_line(booking)}\n💼 {escape(booking.service)}"
    )

    starts_at = booking.starts_at(settings.tz)
    await _notify_admin(
        bot,
        f"❌ <b>Booking cancelled</b>\n\n"
        f"👤 {escape(booking.client_name)}\n"
        f"📅 {starts_at.strftime('%d %B %H:%M')}\n"
        f"💼 {escape(booking.service)}",
    )


# ========== Free Text ==========


@router.message(F.text, ~F.text.startswith("/"))
async def handle_text(message: Message, wizard: BookingWizard):
    """Free text only matters while the wizard waits for a name."""
    try:
        session = await wizard.enter_name(message.chat.id, message.text)
    except InvalidNameError:
        await message.answer(
            f"The name must contain at least {MIN_NAME_LENGTH} characters. "
            f"Please try again:"
        )
        return

    if session is None:
        return

    starts_at = _session_start(session)
    await message.answer(
        f"✅ <b>Booking confirmation</b>\n\n"
        f"👤 Name: {escape(session.name)}\n"
        f"📅 Date: {starts_at.strftime(DATE_LABEL_FORMAT)}\n"
        f"⏰ Time: {starts_at.strftime('%H:%M')}\n"
        f"💼 Service: {escape(settings.service_name)}\n"
        f"⏱ Duration: {settings.service_duration} min\n"
        f"💰 Price: {_price()}\n\n"
        f"Is everything correct?",
        reply_markup=get_confirm_booking_keyboard(),
    )


def register_handlers(dp) -> None:
    """Register all handlers with dispatcher."""
    dp.include_router(router)
