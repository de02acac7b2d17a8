"""Dashboard controller: refresh, rotation, rendering and scroll lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from scoreboard.config import DatasetConfig, Settings
from scoreboard.exceptions import FetchError
from scoreboard.models import (
    DatasetId,
    DatasetStatus,
    LeaderChange,
    Leaderboard,
    Mode,
    RankedRow,
    Row,
    ViewState,
)
from scoreboard.notifications import NotificationSink
from scoreboard.ranking import LeaderTracker, rank
from scoreboard.render import RenderOptions, render
from scoreboard.scroll import ScrollAnimator
from scoreboard.sources import TabularSource, fetch_all
from scoreboard.surfaces import DisplaySurface
from scoreboard.ticker import Ticker
from scoreboard.view import Rotation, parse_dataset, parse_mode

logger = logging.getLogger(__name__)


class DashboardController:
    """Owns all state of one mounted dashboard view.

    Fetches are never cancelled. If a slow refresh finishes after a newer one,
    its rows win; the next tick converges again.
    """

    def __init__(
        self,
        settings: Settings,
        source: TabularSource,
        surface: DisplaySurface,
        sink: NotificationSink,
        ticker: Ticker | None = None,
        animator: ScrollAnimator | None = None,
        view: ViewState | None = None,
    ):
        self.settings = settings
        self.source = source
        self.surface = surface
        self.sink = sink
        self.ticker = ticker or Ticker()
        self.animator = animator or ScrollAnimator(
            speed=settings.timers.scroll_speed,
            frame_rate=settings.timers.frame_rate,
            spacer=settings.timers.scroll_spacer_px,
        )

        self.view = view or ViewState()
        self.rotation = Rotation(settings.rotation.sequence)
        self.leaders = LeaderTracker()
        self.cache: dict[DatasetId, list[Row]] = {}
        self.statuses: dict[DatasetId, DatasetStatus] = {
            dataset: DatasetStatus(dataset=dataset) for dataset in self.datasets
        }
        self.board: Leaderboard | None = None
        self.running = False
        self._stopped = False

    @property
    def datasets(self) -> list[DatasetId]:
        return list(self.settings.datasets)

    def dataset_config(self, dataset: DatasetId) -> DatasetConfig:
        return self.settings.datasets.get(dataset) or DatasetConfig()

    def ranked(self, dataset: DatasetId, mode: Mode) -> list[RankedRow]:
        config = self.dataset_config(dataset)
        return rank(self.cache.get(dataset, []), mode, config.name_fields)

    async def refresh(self) -> Leaderboard | None:
        """One refresh tick: fetch every dataset, detect leaders, re-render.

        A fetch that completes after `stop()` is discarded and returns the
        last rendered board.
        """
        outcome = await fetch_all(self.source, self.datasets)
        if self._stopped:
            logger.debug("Dashboard stopped during refresh; discarding results")
            return self.board

        now = datetime.now(timezone.utc)
        fresh: list[DatasetId] = []

        for dataset, result in outcome.items():
            status = self.statuses.setdefault(dataset, DatasetStatus(dataset=dataset))
            if isinstance(result, FetchError):
                status.ok = False
                status.message = f"Fetch failed: {result}"
                continue

            self.cache[dataset] = result
            status.ok = True
            status.message = "OK"
            status.fetched_at = now
            status.row_count = len(result)
            fresh.append(dataset)

        changes: list[LeaderChange] = []
        for dataset in fresh:
            for mode in Mode:
                change = self.leaders.observe(dataset, mode, self.ranked(dataset, mode))
                if change is not None:
                    changes.append(change)

        if changes:
            await self._notify(self._announced(changes))

        return self.render()

    def _announced(self, changes: list[LeaderChange]) -> LeaderChange:
        """At most one alert per refresh; the board on screen takes precedence."""
        for change in changes:
            if (change.dataset, change.mode) == self.view.key:
                return change
        return changes[0]

    async def _notify(self, change: LeaderChange) -> None:
        try:
            await self.sink.notify(change)
        except Exception as e:
            logger.error(f"Leader notification failed: {e}", exc_info=True)

    def status_text(self, dataset: DatasetId) -> str:
        status = self.statuses.get(dataset)
        if status is None:
            return ""
        if status.ok:
            return f"Updated {status.fetched_at:%H:%M:%S} UTC"
        if status.fetched_at is not None:
            return f"{status.message} (showing data from {status.fetched_at:%H:%M:%S} UTC)"
        return status.message

    def render_options(self, dataset: DatasetId) -> RenderOptions:
        display = self.settings.display
        config = self.dataset_config(dataset)
        return RenderOptions(
            title_prefix=display.title_prefix,
            top_n=config.top_n if config.top_n is not None else display.top_n,
            unknown_name=display.unknown_name,
            columns=config.columns,
        )

    def render(self) -> Leaderboard:
        """Project the cached rows of the current view and restart scrolling."""
        dataset = self.view.dataset
        status = self.statuses.get(dataset)
        board = render(
            self.ranked(dataset, self.view.mode),
            self.view,
            self.render_options(dataset),
            status=self.status_text(dataset),
            stale=status is not None and not status.ok and dataset in self.cache,
        )
        self.board = board
        self.surface.show(board)
        if self._stopped:
            return board

        display = self.settings.display
        self.animator.start(
            content_height=len(board.rows) * display.row_height_px,
            viewport_height=display.viewport_height_px,
        )
        return board

    def select(
        self,
        mode: Mode | str | None = None,
        dataset: DatasetId | str | None = None,
    ) -> Leaderboard:
        """User selection. Raises ConfigError and keeps the view on bad input."""
        new_mode = parse_mode(mode) if mode is not None else self.view.mode
        new_dataset = parse_dataset(dataset) if dataset is not None else self.view.dataset
        self.view.mode = new_mode
        self.view.dataset = new_dataset
        logger.info(f"Selected {new_dataset.value}/{new_mode.value}")
        return self.render()

    def rotate(self) -> Leaderboard:
        self.rotation.advance(self.view)
        return self.render()

    async def _refresh_job(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            logger.error(f"Refresh failed: {e}", exc_info=True)

    async def _rotate_job(self) -> None:
        try:
            self.rotate()
        except Exception as e:
            logger.error(f"Rotation failed: {e}", exc_info=True)

    async def start(self) -> None:
        """Refresh immediately, then arm the refresh and rotation timers."""
        if self.running:
            return
        self.running = True
        self._stopped = False
        self.ticker.start()
        await self._refresh_job()

        timers = self.settings.timers
        self.ticker.every(timers.refresh_interval_seconds, self._refresh_job, name="refresh")
        if self.settings.rotation.enabled:
            self.ticker.every(timers.rotation_interval_seconds, self._rotate_job, name="rotation")

    def stop(self) -> None:
        """Tear down both timers and the scroll animation together.

        A refresh already in flight keeps running but is discarded when it
        completes.
        """
        self._stopped = True
        self.ticker.shutdown()
        self.animator.stop()
        self.running = False
        logger.info("Dashboard stopped")

    async def __aenter__(self) -> DashboardController:
        await self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.stop()

    def boards(self, keys: Iterable[tuple[Mode, DatasetId]]) -> list[Leaderboard]:
        """Render the given boards from cache without touching the live view."""
        boards = []
        for mode, dataset in keys:
            boards.append(
                render(
                    self.ranked(dataset, mode),
                    ViewState(mode=mode, dataset=dataset),
                    self.render_options(dataset),
                    status=self.status_text(dataset),
                )
            )
        return boards
