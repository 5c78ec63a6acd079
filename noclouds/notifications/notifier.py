"""
Notification manager for sending weather alerts.
Handles state tracking and notification logic.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError
import pytz

from .templates import MessageTemplates
from ..database import StateStore, NotificationState
from ..errors import FetchError, ParseError, StateIOError
from ..weather import OpenMeteoClient, WeatherAnalyzer, Sample

logger = logging.getLogger(__name__)


class Notifier:
    """
    Manages weather notifications and state tracking.

    Notification logic:
    - Send "good weather" alert when a window appears in the next 24 hours
      and the last alert was not a good one
    - Send "bad weather" alert when no window is left in the next 24 hours
      and the last alert was a good one
    - Otherwise stay silent

    Delivery is best effort: the new state is stored even when the message
    could not be sent. The state read-modify-write is serialized by a lock.
    """

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        weather: OpenMeteoClient,
        state_store: StateStore,
        analyzer: WeatherAnalyzer
    ):
        """
        Initialize the notifier.

        Args:
            bot: Telegram bot instance
            chat_id: Chat that receives alerts
            weather: Open-Meteo API client
            state_store: Store of the last alert kind
            analyzer: Window detection for the configured thresholds
        """
        self.bot = bot
        self.chat_id = chat_id
        self.weather = weather
        self.state_store = state_store
        self.analyzer = analyzer
        self._lock = asyncio.Lock()

    async def check_next_24h(self, now: Optional[datetime] = None) -> Optional[NotificationState]:
        """
        Fetch the forecast and send an alert if the 24 hour outlook changed.

        Args:
            now: Evaluation time (defaults to current time)

        Returns:
            State after the check, or None when the forecast was unavailable
        """
        logger.info("Starting next 24h weather check")
        now = now or datetime.now(pytz.UTC)

        try:
            samples = await self.weather.get_hourly_forecast()
        except (FetchError, ParseError) as e:
            logger.error(f"Skipping weather check: {e}")
            return None

        starts = self.analyzer.next_window_starts(samples, now)
        return await self._handle_state_change(starts)

    async def _handle_state_change(self, starts: List[Sample]) -> NotificationState:
        """
        Compare the 24 hour outlook with the stored state and alert on change.

        Args:
            starts: Annotated window starts within the next 24 hours

        Returns:
            State after the transition (or the unchanged state)
        """
        async with self._lock:
            current = await self._read_state()
            outlook = NotificationState.from_bool(bool(starts))

            if outlook is current:
                logger.info("No changes in weather forecast for the next 24 hours")
                return current

            if outlook.is_good:
                logger.info("Good weather in the next 24h. Sending message")
                await self._send(MessageTemplates.format_good_weather_alert(starts))
            else:
                logger.info("No more good forecast for the next 24h. Sending message")
                await self._send(MessageTemplates.format_bad_weather_alert())

            await self._write_state(outlook)
            return outlook

    async def get_forecast(self, now: Optional[datetime] = None) -> List[Sample]:
        """
        Get every window start in the whole forecast (about 7 days).

        Raises:
            FetchError: Forecast could not be fetched
            ParseError: Forecast could not be parsed
        """
        now = now or datetime.now(pytz.UTC)
        samples = await self.weather.get_hourly_forecast()
        return self.analyzer.window_starts(samples, now)

    async def _read_state(self) -> NotificationState:
        """Stored state, BAD when it cannot be read."""
        try:
            return await self.state_store.read()
        except StateIOError as e:
            logger.error(f"Can't read notification state, assuming BAD: {e}")
            return NotificationState.BAD

    async def _write_state(self, state: NotificationState) -> None:
        try:
            await self.state_store.write(state)
            logger.info(f"Notification state updated with {state.name}")
        except StateIOError as e:
            logger.error(f"Can't store notification state {state.name}: {e}")

    async def _send(self, text: str) -> None:
        """Send an alert to the configured chat."""
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN_V2
            )
            logger.info(f"Sent alert to chat {self.chat_id}")
        except TelegramError as e:
            logger.error(f"Can't send message to Telegram: {e}")
