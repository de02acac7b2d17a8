"""Notification sinks for leader changes."""

from __future__ import annotations

import logging
from typing import Protocol

from scoreboard.config import Settings
from scoreboard.models import LeaderChange
from scoreboard.services.telegram import TelegramClient, TelegramConfig, TelegramError

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    async def notify(self, change: LeaderChange) -> None: ...


class LogAlertSink:
    """Announces leader changes in the log."""

    async def notify(self, change: LeaderChange) -> None:
        logger.info(f"🏆 {change}")


class TelegramAlertSink:
    """Sends leader changes to a Telegram chat.

    Delivery problems are logged and never propagate into the refresh loop.
    """

    def __init__(self, client: TelegramClient):
        self.client = client

    async def notify(self, change: LeaderChange) -> None:
        try:
            async with self.client as client:
                result = await client.send_leader_alert(change)
        except TelegramError as e:
            logger.warning(f"Leader alert not sent: {e}")
            return

        if result.success:
            logger.info(str(result))
        else:
            logger.warning(str(result))


class MultiSink:
    """Forwards each change to every configured sink."""

    def __init__(self, *sinks: NotificationSink):
        self.sinks = list(sinks)

    async def notify(self, change: LeaderChange) -> None:
        for sink in self.sinks:
            try:
                await sink.notify(change)
            except Exception as e:
                logger.error(f"{type(sink).__name__} failed: {e}", exc_info=True)


def build_sink(settings: Settings) -> MultiSink:
    """Assemble the sinks enabled in settings."""
    sinks: list[NotificationSink] = []

    if settings.alerts.log_enabled:
        sinks.append(LogAlertSink())

    if settings.alerts.telegram_enabled:
        if settings.telegram_bot_token and settings.telegram_chat_id:
            client = TelegramClient(
                config=TelegramConfig(
                    bot_token=settings.telegram_bot_token,
                    default_chat_id=settings.telegram_chat_id,
                )
            )
            sinks.append(TelegramAlertSink(client))
        else:
            logger.warning("Telegram alerts enabled but TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID not set")

    return MultiSink(*sinks)
