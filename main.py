"""
Main entry point for the BookingPro Telegram bot.
Supports both polling and webhook modes.
"""

import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from bot import register_admin_handlers, register_handlers
from bot.cancellation import CancellationService
from bot.session import SessionStore
from bot.wizard import BookingWizard
from config import Settings, settings
from db import SupabaseClient
from gcal import GoogleCalendarClient
from scheduler import setup_scheduler, shutdown_scheduler
from utils.logging_config import setup_logging

WEBHOOK_PATH = "/webhook/telegram"

logger = logging.getLogger(__name__)


def build_dispatcher(bot: Bot, config: Settings) -> Dispatcher:
    """
    Construct gateways once and hand them to handlers as workflow data.

    aiogram passes `wizard`, `cancellation` and `store` to every handler
    that declares a parameter with that name.
    """
    storage = MemoryStorage()

    store = SupabaseClient.from_credentials(config.supabase_url, config.supabase_key)
    calendar = GoogleCalendarClient.from_service_account_file(
        config.google_calendar_credentials_path,
        calendar_id=config.google_calendar_id,
        timezone=config.tz,
        default_duration=config.slot_duration,
    )

    wizard = BookingWizard(SessionStore(storage, bot.id), calendar, store, config)
    cancellation = CancellationService(calendar, store, config)

    dp = Dispatcher(
        storage=storage,
        wizard=wizard,
        cancellation=cancellation,
        store=store,
    )
    register_admin_handlers(dp)
    register_handlers(dp)
    return dp


async def on_startup(bot: Bot, dp: Dispatcher) -> None:
    """Configure webhook on startup."""
    if settings.bot_webhook_url:
        webhook_url = f"{settings.bot_webhook_url.rstrip('/')}{WEBHOOK_PATH}"

        await bot.set_webhook(
            url=webhook_url,
            allowed_updates=dp.resolve_used_update_types(),
        )
        logger.info(f"Webhook configured: {webhook_url}")
    else:
        logger.info("Webhook URL not configured, using polling mode")


async def on_shutdown(bot: Bot) -> None:
    """Cleanup on shutdown."""
    if settings.bot_webhook_url:
        await bot.delete_webhook()
        logger.info("Webhook removed")

    shutdown_scheduler()


async def main() -> None:
    """Main async function to run the bot."""
    bot = Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    try:
        logger.info("Starting BookingPro bot...")
        logger.info(f"Timezone: {settings.timezone}")
        logger.info(
            f"Service: {settings.service_name} - "
            f"{settings.service_price}{settings.service_currency}"
        )

        dp = build_dispatcher(bot, settings)
        logger.info("Handlers registered")

        setup_scheduler(bot, dp["store"], settings)

        if settings.bot_webhook_url:
            # Webhook mode (production)
            app = web.Application()

            webhook_requests_handler = SimpleRequestHandler(dispatcher=dp, bot=bot)
            webhook_requests_handler.register(app, path=WEBHOOK_PATH)
            setup_application(app, dp, bot=bot)

            await on_startup(bot, dp)

            logger.info(
                f"Bot webhook server starting on {settings.host}:{settings.port}"
            )
            runner = web.AppRunner(app)
            await runner.setup()
            site = web.TCPSite(runner, host=settings.host, port=settings.port)
            await site.start()
            await asyncio.Event().wait()
        else:
            # Polling mode (development)
            logger.info("Bot is running in polling mode. Press Ctrl+C to stop.")
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())

    except asyncio.CancelledError:
        logger.info("Bot cancelled")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down...")
        await on_shutdown(bot)

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.error(f"Error closing bot session: {e}", exc_info=True)

        logger.info("Bot shutdown complete")


if __name__ == "__main__":
    setup_logging(log_level=settings.log_level, log_file="bot.log", log_dir="logs")

    try:
        settings.validate_all_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
