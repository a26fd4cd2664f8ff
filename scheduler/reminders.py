"""
Scheduler for appointment reminders using APScheduler.
Sends a Telegram reminder ahead of each confirmed booking.
"""

import logging
from datetime import timedelta
from html import escape

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Settings
from db import SupabaseClient
from models.booking import Booking
from utils.constants import DATE_LABEL_FORMAT
from utils.datetime_utils import local_now
from utils.exceptions import DatabaseError

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def send_reminder(
    bot: Bot, store: SupabaseClient, booking: Booking, settings: Settings
) -> bool:
    """
    Send reminder to client about upcoming appointment.

    Returns:
        True if sent and recorded, False otherwise
    """
    starts_at = booking.starts_at(settings.tz)
    reminder_text = (
        f"🔔 <b>Reminder:</b> you have a booking soon!\n\n"
        f"📅 {starts_at.strftime(DATE_LABEL_FORMAT)}\n"
        f"⏰ {starts_at.strftime('%H:%M')}\n"
        f"💼 {escape(booking.service)}\n\n"
        f"See you! 💪\n\n"
        f"<i>To cancel: /cancel</i>"
    )

    try:
        await bot.send_message(int(booking.user_id), reminder_text)
    except TelegramAPIError as e:
        logger.error(f"Failed to send reminder for booking {booking.id}: {e}")
        return False

    try:
        updated_booking = await store.mark_reminder_sent(booking.id)
    except DatabaseError as e:
        logger.error(f"Failed to mark reminder sent for booking {booking.id}: {e}")
        return False

    if not updated_booking:
        logger.warning(f"Failed to mark reminder as sent for booking {booking.id}")
        return False

    logger.info(f"Reminder sent for booking {booking.id} to user {booking.user_id}")
    return True


async def check_and_send_reminders(
    bot: Bot, store: SupabaseClient, settings: Settings
) -> None:
    """Check for bookings that need reminders and send them."""
    now = local_now(settings.tz)
    window_end = now + timedelta(hours=settings.reminder_hours_before)

    try:
        bookings = await store.get_bookings_for_reminder(now, window_end)
    except DatabaseError as e:
        logger.error(f"Database error checking reminders: {e}", exc_info=True)
        return

    if not bookings:
        logger.debug("No bookings require reminders at this time")
        return

    logger.info(f"Processing {len(bookings)} bookings for reminders")

    sent_count = 0
    for booking in bookings:
        if await send_reminder(bot, store, booking, settings):
            sent_count += 1

    logger.info(
        f"Reminder processing complete: {sent_count} sent, "
        f"{len(bookings) - sent_count} failed"
    )


def setup_scheduler(bot: Bot, store: SupabaseClient, settings: Settings) -> None:
    """Register the hourly reminder job and start the scheduler."""
    scheduler.add_job(
        check_and_send_reminders,
        trigger=CronTrigger(minute=0, timezone=settings.tz),  # Every hour at minute 0
        kwargs={"bot": bot, "store": store, "settings": settings},
        id="check_reminders",
        name="Check and send appointment reminders",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    """Shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
