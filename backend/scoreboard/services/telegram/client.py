"""Telegram client for leader-change alerts."""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any

from telegram import Bot
from telegram.error import TelegramError as BotError

from scoreboard.models import LeaderChange

from .config import TelegramConfig
from .exceptions import TelegramAuthError, TelegramConfigError
from .models import NotificationResult

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


def format_leader_change(change: LeaderChange) -> str:
    """HTML message body for a leader change."""
    return (
        f"🏆 <b>New {html.escape(change.dataset.label)} leader "
        f"({html.escape(change.mode.label)})</b>\n"
        f"{html.escape(change.current)} takes #1 with {change.score:g} points\n"
        f"<i>Previously: {html.escape(change.previous)}</i>"
    )


class TelegramClient:
    """Async Telegram client. Use as an async context manager."""

    def __init__(
        self,
        config: TelegramConfig | None = None,
        bot_token: str | None = None,
        default_chat_id: str | None = None,
        bot: Bot | None = None,
    ):
        self.config = config or TelegramConfig()

        if bot_token:
            self.config.bot_token = bot_token
        if default_chat_id:
            self.config.default_chat_id = default_chat_id

        if not self.config.bot_token and bot is None:
            raise TelegramConfigError("bot_token is required. Provide via config or constructor.")

        self._injected_bot = bot
        self._bot: Bot | None = None
        logger.info("Initialized TelegramClient")

    async def __aenter__(self) -> TelegramClient:
        bot = self._injected_bot or Bot(token=self.config.bot_token)
        try:
            bot_info = await bot.get_me()
            logger.info(f"Connected to Telegram bot: @{bot_info.username}")
        except BotError as e:
            logger.error(f"Failed to initialize Telegram bot: {e}")
            raise TelegramAuthError(f"Invalid bot token: {e}") from e

        self._bot = bot
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._bot:
            self._bot = None
            logger.info("Closed TelegramClient")

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("TelegramClient must be used as async context manager")
        return self._bot

    async def send_message(
        self,
        text: str,
        chat_id: str | None = None,
        board: str = "",
    ) -> NotificationResult:
        """Send a message, retrying once after a short pause."""
        target_chat_id = chat_id or self.config.default_chat_id
        if not target_chat_id:
            raise TelegramConfigError("chat_id is required. Provide via config or method argument.")

        last_error: str | None = None

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                message = await self.bot.send_message(
                    chat_id=target_chat_id,
                    text=text,
                    parse_mode=self.config.parse_mode,
                )
                logger.info(f"Alert sent to {target_chat_id} (message_id: {message.message_id})")
                return NotificationResult(
                    success=True,
                    recipient=target_chat_id,
                    board=board,
                    message_id=message.message_id,
                    attempts=attempt,
                )
            except BotError as e:
                last_error = e.message or "Telegram error"
                logger.warning(f"Telegram send failed (attempt {attempt}/{MAX_ATTEMPTS}): {last_error}")

            if attempt < MAX_ATTEMPTS:
                await asyncio.sleep(self.config.retry_delay_seconds)

        return NotificationResult(
            success=False,
            recipient=target_chat_id,
            board=board,
            attempts=MAX_ATTEMPTS,
            error=last_error or "Message send failed",
        )

    async def send_leader_alert(
        self, change: LeaderChange, chat_id: str | None = None
    ) -> NotificationResult:
        return await self.send_message(
            format_leader_change(change),
            chat_id=chat_id,
            board=f"{change.dataset.value}/{change.mode.value}",
        )


def create_telegram_client(
    bot_token: str | None = None,
    chat_id: str | None = None,
    config: TelegramConfig | None = None,
) -> TelegramClient:
    """Create a TelegramClient instance."""
    return TelegramClient(config=config, bot_token=bot_token, default_chat_id=chat_id)
