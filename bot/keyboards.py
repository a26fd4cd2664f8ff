"""
Inline keyboards for bot interactions.
"""

from datetime import date
from typing import List
from zoneinfo import ZoneInfo

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from models.booking import Booking
from models.slot import AvailableSlot
from utils.constants import DATE_VALUE_FORMAT


def date_button_label(day: date, today: date) -> str:
    """Button text for a date: Today, Tomorrow or the full date."""
    offset = (day - today).days
    if offset == 0:
        return "🔥 Today"
    if offset == 1:
        return "📆 Tomorrow"
    return day.strftime("%d %B (%A)")


def get_dates_keyboard(dates: List[date], today: date) -> InlineKeyboardMarkup:
    """Get date selection keyboard."""
    builder = InlineKeyboardBuilder()

    for day in dates:
        builder.row(
            InlineKeyboardButton(
                text=date_button_label(day, today),
                callback_data=f"date_{day.strftime(DATE_VALUE_FORMAT)}",
            )
        )

    return builder.as_markup()


def get_slots_keyboard(slots: List[AvailableSlot]) -> InlineKeyboardMarkup:
    """Get available slots keyboard."""
    builder = InlineKeyboardBuilder()

    for slot in slots:
        builder.row(
            InlineKeyboardButton(text=slot.label, callback_data=f"time_{slot.value}")
        )

    builder.row(InlineKeyboardButton(text="◀️ Back", callback_data="back_to_date"))

    return builder.as_markup()


def get_confirm_booking_keyboard() -> InlineKeyboardMarkup:
    """Get booking confirmation keyboard."""
    builder = InlineKeyboardBuilder()

    builder.row(
        InlineKeyboardButton(text="✅ Yes, confirm", callback_data="confirm_yes"),
        InlineKeyboardButton(text="❌ Cancel", callback_data="confirm_no"),
    )

    return builder.as_markup()


def get_cancel_bookings_keyboard(
    bookings: List[Booking], tz: ZoneInfo
) -> InlineKeyboardMarkup:
    """Get keyboard listing bookings the user can cancel."""
    builder = InlineKeyboardBuilder()

    for booking in bookings:
        starts_at = booking.starts_at(tz)
        builder.row(
            InlineKeyboardButton(
                text=f"{starts_at.strftime('%d %b %H:%M')} - {booking.service}",
                callback_data=f"cancel_{booking.id}",
            )
        )

    return builder.as_markup()
