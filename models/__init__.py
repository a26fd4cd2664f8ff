"""Pydantic models for data validation and serialization."""

from .booking import Booking, BookingCreate, BookingStatus
from .slot import AvailableSlot, TimeInterval

__all__ = [
    "AvailableSlot",
    "Booking",
    "BookingCreate",
    "BookingStatus",
    "TimeInterval",
]
