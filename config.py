"""
Configuration module for BookingPro Telegram bot.
Loads environment variables and provides typed configuration.
"""

from datetime import time
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    telegram_bot_token: str = ""
    admin_telegram_id: Optional[int] = None  # Receives booking notifications
    support_username: str = "your_support_username"

    # Service
    timezone: str = "Europe/Moscow"
    service_name: str = "Personal Training"
    service_price: str = "2500"
    service_currency: str = "₽"
    service_duration: int = Field(default=60, gt=0)  # Calendar event length, minutes

    # Working hours and slot grid
    work_start_hour: int = Field(default=9, ge=0, le=23)
    work_end_hour: int = Field(default=18, ge=1, le=23)
    slot_duration: int = Field(default=60, gt=0)  # Minutes
    buffer_time: int = Field(default=0, ge=0)  # Minutes between slots

    # Google Calendar
    google_calendar_id: str = ""
    google_calendar_credentials_path: str = "./google-calendar-credentials.json"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Reminders
    reminder_hours_before: int = 24

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    # Webhook Configuration
    bot_webhook_url: Optional[str] = (
        None  # Full webhook URL for bot (e.g., https://yourdomain.com/webhook/telegram)
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def validate_work_hours(self) -> "Settings":
        if self.work_end_hour <= self.work_start_hour:
            raise ValueError("work_end_hour must be greater than work_start_hour")
        return self

    @property
    def tz(self) -> ZoneInfo:
        """Configured business timezone."""
        return ZoneInfo(self.timezone)

    @property
    def work_start(self) -> time:
        return time(hour=self.work_start_hour)

    @property
    def work_end(self) -> time:
        return time(hour=self.work_end_hour)

    def is_admin(self, telegram_id: int) -> bool:
        """
        Check if a Telegram user ID is the admin recipient.

        Args:
            telegram_id: Telegram user ID to check

        Returns:
            True if user is admin, False otherwise
        """
        if not self.admin_telegram_id:
            return False
        return telegram_id == self.admin_telegram_id

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = [
            "telegram_bot_token",
            "admin_telegram_id",
            "google_calendar_id",
            "supabase_url",
            "supabase_key",
        ]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            # Check if value is missing or placeholder
            if not value:
                missing.append(field)
                continue

            if str(value).lower().startswith("your_"):
                missing.append(field)

        credentials = Path(self.google_calendar_credentials_path)
        if not credentials.is_file():
            missing.append("google_calendar_credentials_path")

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
