"""
Telegram bot command handlers.
Handles /start, the forecast button and everything else.
"""

import logging

from telegram import Update, KeyboardButton, ReplyKeyboardMarkup
from telegram.ext import ContextTypes
from telegram.constants import ParseMode

from ..errors import FetchError, ParseError
from ..notifications import Notifier, MessageTemplates

logger = logging.getLogger(__name__)


class CommandHandlers:
    """
    Handles all Telegram chat interactions.

    Only the configured chat is served; messages from other chats are
    logged and ignored.
    """

    def __init__(self, notifier: Notifier, chat_id: int, forecast_trigger: str):
        """
        Initialize command handlers.

        Args:
            notifier: Notifier instance
            chat_id: The only chat allowed to talk to the bot
            forecast_trigger: Text of the forecast button
        """
        self.notifier = notifier
        self.chat_id = chat_id
        self.forecast_trigger = forecast_trigger
        self.keyboard = ReplyKeyboardMarkup(
            [[KeyboardButton(forecast_trigger)]],
            resize_keyboard=True
        )

    def _is_authorized(self, update: Update) -> bool:
        chat = update.effective_chat
        if chat is None or chat.id != self.chat_id:
            logger.warning(
                f"Chat ID {chat.id if chat else None} unauthorized. Ignoring message"
            )
            return False
        return True

    async def _reply(self, update: Update, text: str) -> None:
        logger.info("Sending message to Telegram")
        await update.effective_message.reply_text(
            text,
            parse_mode=ParseMode.MARKDOWN_V2,
            reply_markup=self.keyboard
        )

    async def start_command(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """
        Handle /start command.
        Sends greeting together with the forecast keyboard.
        """
        if not self._is_authorized(update):
            return

        user = update.effective_user
        logger.info(f"[{user.username if user else '-'}] /start")
        await self._reply(update, MessageTemplates.format_start_message())

    async def forecast_message(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """
        Handle the forecast button.
        Replies with every good weather window of the next 7 days.
        """
        if not self._is_authorized(update):
            return

        user = update.effective_user
        logger.info(f"[{user.username if user else '-'}] {update.effective_message.text}")

        try:
            starts = await self.notifier.get_forecast()
        except (FetchError, ParseError) as e:
            logger.error(f"Can't build 7 day forecast: {e}")
            await self._reply(update, MessageTemplates.format_forecast_unavailable())
            return

        await self._reply(update, MessageTemplates.format_forecast(starts))

    async def unknown_message(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle any other message, text or not."""
        if not self._is_authorized(update):
            return

        user = update.effective_user
        text = update.effective_message.text or "<non-text message>"
        logger.info(f"[{user.username if user else '-'}] {text}")
        await self._reply(update, MessageTemplates.format_bad_request_message())
