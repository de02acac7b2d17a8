"""Telegram leader-change alerts."""

from .client import TelegramClient, create_telegram_client
from .config import TelegramConfig
from .exceptions import TelegramAuthError, TelegramConfigError, TelegramError
from .models import NotificationResult

__all__ = [
    "TelegramClient",
    "create_telegram_client",
    "TelegramConfig",
    "NotificationResult",
    "TelegramError",
    "TelegramAuthError",
    "TelegramConfigError",
]
