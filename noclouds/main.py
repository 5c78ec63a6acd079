"""
Main entry point for the NoClouds Telegram bot.
Initializes all components and starts the bot.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config
from .database import StateStore, create_state_store
from .errors import ConfigError, StateIOError
from .weather import OpenMeteoClient, WeatherAnalyzer
from .notifications import Notifier
from .handlers import CommandHandlers

logger = logging.getLogger(__name__)


class NoCloudsBot:
    """
    Main bot class that coordinates all components.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the bot.

        Args:
            config: Ready configuration (loaded from the environment if omitted)
        """
        self.config = config
        self.state_store: StateStore = None
        self.weather: OpenMeteoClient = None
        self.notifier: Notifier = None
        self.scheduler: AsyncIOScheduler = None
        self.application: Application = None
        self._running = False

    async def initialize(self) -> None:
        """
        Initialize all bot components.

        Raises:
            ConfigError: Mandatory settings are missing or invalid
        """
        if self.config is None:
            self.config = Config.load()
        config = self.config

        config.setup_logging()
        logger.debug("Initializing NoClouds bot...")

        config.ensure_data_dir()

        # The last alert is forgotten on restart
        self.state_store = create_state_store(config)
        try:
            await self.state_store.initialize()
        except StateIOError as e:
            logger.error(f"Can't initialize notification state: {e}")

        self.weather = OpenMeteoClient(
            api_endpoint=config.api_endpoint,
            request_params=config.request_params,
            latitude=config.latitude,
            longitude=config.longitude,
            timeout_seconds=config.request_timeout_seconds
        )

        # Build telegram application
        self.application = (
            Application.builder()
            .token(config.bot_token)
            .build()
        )

        self.notifier = Notifier(
            bot=self.application.bot,
            chat_id=config.chat_id_int,
            weather=self.weather,
            state_store=self.state_store,
            analyzer=WeatherAnalyzer(config.thresholds)
        )

        self._setup_handlers()
        self._setup_scheduler()

        logger.debug("NoClouds bot initialized successfully")

    def _setup_handlers(self) -> None:
        """Setup Telegram chat handlers."""
        cmd_handlers = CommandHandlers(
            self.notifier,
            chat_id=self.config.chat_id_int,
            forecast_trigger=self.config.forecast_trigger
        )

        self.application.add_handler(
            CommandHandler("start", cmd_handlers.start_command)
        )
        self.application.add_handler(
            MessageHandler(
                filters.Text([self.config.forecast_trigger]),
                cmd_handlers.forecast_message
            )
        )

        # Anything else, including commands and non-text messages
        self.application.add_handler(
            MessageHandler(filters.ALL, cmd_handlers.unknown_message)
        )

        logger.debug("Chat handlers registered")

    def _setup_scheduler(self) -> None:
        """Setup the cron scheduled 24h weather check."""
        timezone = self.config.get_timezone()
        self.scheduler = AsyncIOScheduler(timezone=timezone)

        self.scheduler.add_job(
            self._scheduled_weather_check,
            trigger=CronTrigger.from_crontab(self.config.cron_expression, timezone=timezone),
            id="weather_check",
            name="Next 24h weather check",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        logger.debug(f"Scheduler configured: '{self.config.cron_expression}' ({timezone})")

    async def _scheduled_weather_check(self) -> None:
        """Scheduled job to check the next 24 hours."""
        logger.info("Starting cron job")
        try:
            await self.notifier.check_next_24h()
        except Exception as e:
            logger.exception(f"Error in scheduled weather check: {e}")

    async def start(self) -> None:
        """Start the bot."""
        if self._running:
            logger.warning("Bot is already running")
            return

        self._running = True
        logger.debug("Starting NoClouds bot...")

        self.scheduler.start()
        logger.info("Background cron job activated")

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(
            allowed_updates=Update.ALL_TYPES
        )

        me = self.application.bot.username
        logger.info(f"Bot started, authorized on account {me}")

        # Keep running until stopped
        while self._running:
            await asyncio.sleep(1)

    async def stop(self) -> None:
        """Stop the bot gracefully."""
        logger.debug("Stopping NoClouds bot...")
        self._running = False

        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        # Stop bot (updater may already be stopped)
        if self.application:
            try:
                if self.application.updater:
                    await self.application.updater.stop()
            except RuntimeError:
                pass
            try:
                await self.application.stop()
                await self.application.shutdown()
            except RuntimeError:
                pass

        if self.weather:
            await self.weather.close()

        if self.state_store:
            await self.state_store.close()

        logger.debug("NoClouds bot stopped")


async def main() -> None:
    """Main entry point."""
    bot = NoCloudsBot()

    # Setup signal handlers for graceful shutdown
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.debug("Received shutdown signal")
        asyncio.create_task(bot.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await bot.initialize()
        await bot.start()
    except KeyboardInterrupt:
        logger.debug("Interrupted by user")
    finally:
        await bot.stop()


def run() -> None:
    """Run the bot (blocking)."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Config error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
