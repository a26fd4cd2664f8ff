"""
Admin handlers for viewing bookings.
Accessible only to the configured admin user.
"""

import logging
from collections import Counter
from html import escape

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from config import settings
from db import SupabaseClient
from models.booking import BookingStatus
from utils.constants import ADMIN_BOOKINGS_DISPLAY_LIMIT, DATE_LABEL_FORMAT
from utils.datetime_utils import local_now, parse_date_value
from utils.exceptions import DatabaseError

logger = logging.getLogger(__name__)

admin_router = Router()


def is_admin_user(telegram_id: int) -> bool:
    """Check if user is admin."""
    return settings.is_admin(telegram_id)


async def require_admin(message: Message) -> bool:
    """Check admin access and send error if not admin."""
    if not is_admin_user(message.from_user.id):
        await message.answer(
            "❌ Access denied. This command is only available to administrators."
        )
        return False
    return True


@admin_router.message(Command("admin"))
async def cmd_admin(message: Message):
    """Admin panel entry point."""
    if not await require_admin(message):
        return

    await message.answer(
        "🔐 <b>Admin Panel</b>\n\n"
        "Available commands:\n"
        "• /admin_bookings - Today's bookings\n"
        "• /admin_bookings YYYY-MM-DD - Bookings for a date\n\n"
        "New bookings and cancellations are sent to this chat."
    )


@admin_router.message(Command("admin_bookings"))
async def cmd_admin_bookings(
    message: Message, command: CommandObject, store: SupabaseClient
):
    """List bookings for a date (today by default)."""
    if not await require_admin(message):
        return

    if command.args:
        try:
            day = parse_date_value(command.args.strip())
        except ValueError:
            await message.answer(
                "❌ Invalid date. Use:\n<code>/admin_bookings YYYY-MM-DD</code>"
            )
            return
    else:
        day = local_now(settings.tz).date()

    try:
        bookings = await store.list_bookings(on_date=day)
    except DatabaseError as e:
        logger.error(f"Error fetching bookings for {day}: {e}", exc_info=True)
        await message.answer("❌ Error loading bookings.")
        return

    title = day.strftime(DATE_LABEL_FORMAT)
    if not bookings:
        await message.answer(f"📋 No bookings for {title}.")
        return

    counts = Counter(booking.status for booking in bookings)
    text = (
        f"📋 <b>Bookings for {title}</b>\n\n"
        f"• Confirmed: {counts[BookingStatus.CONFIRMED]}\n"
        f"• Cancelled: {counts[BookingStatus.CANCELLED]}\n"
        f"• Total: {len(bookings)}\n\n"
    )

    for booking in bookings[:ADMIN_BOOKINGS_DISPLAY_LIMIT]:
        status_emoji = "✅" if booking.status == BookingStatus.CONFIRMED else "❌"
        username = f" @{escape(booking.telegram_username)}" if booking.telegram_username else ""
        text += (
            f"{status_emoji} {booking.appointment_time.strftime('%H:%M')} - "
            f"{escape(booking.client_name)}{username} (#{booking.short_id})\n"
        )

    if len(bookings) > ADMIN_BOOKINGS_DISPLAY_LIMIT:
        text += f"\n... and {len(bookings) - ADMIN_BOOKINGS_DISPLAY_LIMIT} more"

    await message.answer(text)


def register_admin_handlers(dp) -> None:
    """Register admin handlers with dispatcher."""
    dp.include_router(admin_router)
