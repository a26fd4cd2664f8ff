"""Task scheduler for appointment reminders."""

from .reminders import send_reminder, setup_scheduler, shutdown_scheduler

__all__ = ["setup_scheduler", "send_reminder", "shutdown_scheduler"]
