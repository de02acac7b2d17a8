"""Telegram service exceptions."""

from scoreboard.exceptions import ScoreboardError


class TelegramError(ScoreboardError):
    """Base Telegram exception."""

    pass


class TelegramAuthError(TelegramError):
    """Bot token rejected."""

    pass


class TelegramConfigError(TelegramError):
    """Missing token or chat id."""

    pass
