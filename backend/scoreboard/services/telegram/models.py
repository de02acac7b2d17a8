"""Telegram alert models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class NotificationResult(BaseModel):
    """Outcome of one leader alert delivery."""

    success: bool
    recipient: str
    board: str = ""
    message_id: int | None = None
    attempts: int = 1
    error: str | None = None
    sent_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __str__(self) -> str:
        where = f"{self.board} alert" if self.board else "alert"
        if self.success:
            return f"{where} delivered to {self.recipient} (msg_id: {self.message_id})"
        return f"{where} to {self.recipient} failed after {self.attempts} attempts: {self.error}"
