"""
Application-wide constants.
Centralizes magic numbers and configuration values.
"""

# Display formatting
BOOKING_ID_DISPLAY_LENGTH = 6  # Trailing characters of booking ID shown to clients
ADMIN_BOOKINGS_DISPLAY_LIMIT = 20  # Maximum bookings in /admin_bookings

# Wizard
DATE_PICKER_DAYS = 7  # Today plus the next six days
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100

# Time formats
TIME_FORMAT = "%H:%M"
DATE_VALUE_FORMAT = "%Y-%m-%d"
DATE_LABEL_FORMAT = "%d %B %Y (%A)"

# Calendar event reminders (minutes before start)
EMAIL_REMINDER_MINUTES = 24 * 60
POPUP_REMINDER_MINUTES = 60
