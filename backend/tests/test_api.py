#!/usr/bin/env python3
"""Tests for the dashboard HTTP API."""

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from scoreboard.api import create_app
from scoreboard.config import Settings
from scoreboard.exceptions import FetchError
from scoreboard.models import DatasetId


class StaticSource:
    def __init__(self, rows_by_dataset):
        self.rows_by_dataset = rows_by_dataset

    async def fetch(self, dataset):
        result = self.rows_by_dataset[dataset]
        if isinstance(result, Exception):
            raise result
        return result


class NullSink:
    async def notify(self, change):
        pass


ADVISORS = [
    {"Advisor Name": "Asha", "Today Load": "10", "Today Labour": "5", "Today VAS": "2"},
    {"Advisor Name": "Bilal", "Today Load": "1", "Today Labour": "1", "Today VAS": "1"},
]


def _app(technician=None):
    settings = Settings(_env_file=None)
    settings.rotation.enabled = False
    source = StaticSource(
        {
            DatasetId.ADVISOR: ADVISORS,
            DatasetId.TECHNICIAN: technician if technician is not None else [],
        }
    )
    return create_app(settings, source=source, sink=NullSink())


def test_board_is_served_after_startup() -> None:
    with TestClient(_app()) as client:
        assert client.get("/api/health").json() == {"status": "ok", "running": True}

        board = client.get("/api/board").json()
        assert board["title"] == "Advisor Today"
        assert [(r["rank"], r["name"], r["score"]) for r in board["rows"]] == [
            (1, "Asha", 37),
            (2, "Bilal", 6),
        ]


def test_view_selection_and_validation() -> None:
    with TestClient(_app()) as client:
        response = client.post("/api/view", json={"mode": "total"})
        assert response.status_code == 200
        assert response.json()["mode"] == "total"

        response = client.post("/api/view", json={"dataset": "manager"})
        assert response.status_code == 400

        status = client.get("/api/status").json()
        assert status["view"] == {"mode": "total", "dataset": "advisor"}


def test_status_reports_failed_dataset() -> None:
    with TestClient(_app(technician=FetchError("HTTP 502"))) as client:
        datasets = {d["dataset"]: d for d in client.get("/api/status").json()["datasets"]}
        assert datasets["advisor"]["ok"] is True
        assert datasets["technician"]["ok"] is False

        board = client.post("/api/view", json={"dataset": "technician"}).json()
        assert board["rows"] == []
        assert "Fetch failed" in board["status"]


def test_scroll_and_manual_refresh() -> None:
    with TestClient(_app()) as client:
        scroll = client.get("/api/scroll").json()
        # two rows fit the default viewport
        assert scroll == {"offset": 0.0, "loop_height": 0.0, "active": False}

        board = client.post("/api/refresh").json()
        assert len(board["rows"]) == 2
