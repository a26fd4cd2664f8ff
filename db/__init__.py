"""Booking store client and operations."""

from .supabase_client import SupabaseClient

__all__ = ["SupabaseClient"]
