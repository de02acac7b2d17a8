"""FastAPI server exposing the live leaderboard to a browser display."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from scoreboard import __version__
from scoreboard.config import Settings, get_settings
from scoreboard.dashboard import DashboardController
from scoreboard.exceptions import ConfigError
from scoreboard.notifications import NotificationSink, build_sink
from scoreboard.services.sheets import SheetsClient
from scoreboard.sources import TabularSource
from scoreboard.surfaces import MemorySurface

logger = logging.getLogger(__name__)


class ViewSelection(BaseModel):
    """Body of POST /api/view. Omitted fields keep their current value."""

    mode: str | None = None
    dataset: str | None = None


def _controller(request: Request) -> DashboardController:
    return request.app.state.controller


def create_app(
    settings: Settings | None = None,
    source: TabularSource | None = None,
    sink: NotificationSink | None = None,
) -> FastAPI:
    """Build the API; the dashboard starts and stops with the app lifespan."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as stack:
            feed = source
            if feed is None:
                feed = await stack.enter_async_context(
                    SheetsClient(settings.datasets, settings.sheets)
                )

            surface = MemorySurface()
            controller = DashboardController(
                settings=settings,
                source=feed,
                surface=surface,
                sink=sink or build_sink(settings),
            )
            app.state.surface = surface
            app.state.controller = controller

            await controller.start()
            logger.info("Dashboard API ready")
            try:
                yield
            finally:
                controller.stop()

    app = FastAPI(title="Scoreboard Dashboard API", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health(request: Request) -> dict[str, Any]:
        return {"status": "ok", "running": _controller(request).running}

    @app.get("/api/board")
    async def board(request: Request) -> dict[str, Any]:
        current = request.app.state.surface.board
        if current is None:
            raise HTTPException(status_code=503, detail="No board rendered yet")
        return current.model_dump(mode="json")

    @app.get("/api/scroll")
    async def scroll(request: Request) -> dict[str, Any]:
        animator = _controller(request).animator
        return {
            "offset": animator.offset,
            "loop_height": animator.loop_height,
            "active": animator.active,
        }

    @app.get("/api/status")
    async def status(request: Request) -> dict[str, Any]:
        controller = _controller(request)
        return {
            "view": controller.view.model_dump(mode="json"),
            "datasets": [s.model_dump(mode="json") for s in controller.statuses.values()],
        }

    @app.post("/api/view")
    async def select_view(selection: ViewSelection, request: Request) -> dict[str, Any]:
        try:
            current = _controller(request).select(mode=selection.mode, dataset=selection.dataset)
        except ConfigError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return current.model_dump(mode="json")

    @app.post("/api/refresh")
    async def refresh(request: Request) -> dict[str, Any]:
        current = await _controller(request).refresh()
        if current is None:
            raise HTTPException(status_code=503, detail="Dashboard is stopped")
        return current.model_dump(mode="json")

    return app
