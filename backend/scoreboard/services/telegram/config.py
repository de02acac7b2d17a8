"""Telegram service config."""

from pydantic import BaseModel


class TelegramConfig(BaseModel):
    """Bot credentials and delivery options."""

    bot_token: str = ""
    default_chat_id: str = ""
    retry_delay_seconds: float = 2.0
    parse_mode: str = "HTML"
