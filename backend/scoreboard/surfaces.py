"""Display surfaces that receive rendered boards."""

from __future__ import annotations

import logging
from typing import Protocol

from scoreboard.models import Leaderboard

logger = logging.getLogger(__name__)


class DisplaySurface(Protocol):
    def show(self, board: Leaderboard) -> None: ...


class MemorySurface:
    """Keeps the latest board for pull-based consumers such as the HTTP API."""

    def __init__(self) -> None:
        self.board: Leaderboard | None = None
        self.renders = 0

    def show(self, board: Leaderboard) -> None:
        self.board = board
        self.renders += 1


class LogSurface:
    """Writes the podium and status of each board to the log."""

    def show(self, board: Leaderboard) -> None:
        podium = ", ".join(f"#{r.rank} {r.name} ({r.score})" for r in board.top) or "(empty)"
        suffix = f" [{board.status}]" if board.status else ""
        logger.info(f"{board.title}: {len(board.rows)} rows; top: {podium}{suffix}")


class MultiSurface:
    """Fans a board out to several surfaces."""

    def __init__(self, *surfaces: DisplaySurface):
        self.surfaces = list(surfaces)

    def show(self, board: Leaderboard) -> None:
        for surface in self.surfaces:
            surface.show(board)
