"""Unit tests for the dashboard controller."""

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scoreboard.config import Settings
from scoreboard.dashboard import DashboardController
from scoreboard.exceptions import ConfigError, FetchError
from scoreboard.models import DatasetId, Mode
from scoreboard.surfaces import MemorySurface


def _row(name: str, load: str) -> dict[str, str]:
    return {"Name": name, "Today Load": load, "Today Labour": "0", "Today VAS": "0"}


class FakeSource:
    """Returns queued results per dataset; an exception in the queue is raised."""

    def __init__(self, **queues):
        self.queues = {DatasetId(k): list(v) for k, v in queues.items()}
        self.calls: list[DatasetId] = []

    async def fetch(self, dataset):
        self.calls.append(dataset)
        queue = self.queues[dataset]
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeSink:
    def __init__(self):
        self.changes = []

    async def notify(self, change):
        self.changes.append(change)


def _settings(**overrides) -> Settings:
    settings = Settings(_env_file=None)
    settings.display.viewport_height_px = 100
    settings.display.row_height_px = 40
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def _controller(source, sink=None, surface=None) -> DashboardController:
    return DashboardController(
        settings=_settings(),
        source=source,
        surface=surface or MemorySurface(),
        sink=sink or FakeSink(),
    )


def test_refresh_fetches_all_and_renders_current_view() -> None:
    source = FakeSource(
        advisor=[[_row("A", "10"), _row("B", "3"), _row("C", "7")]],
        technician=[[_row("T", "1")]],
    )
    surface = MemorySurface()
    controller = _controller(source, surface=surface)

    board = asyncio.run(controller.refresh())

    assert sorted(source.calls) == sorted([DatasetId.ADVISOR, DatasetId.TECHNICIAN])
    assert [r.name for r in board.rows] == ["A", "C", "B"]
    assert surface.board is board
    assert board.stale is False
    assert board.status.startswith("Updated")
    # 3 rows * 40px > 100px viewport
    assert controller.animator.active
    assert controller.animator.loop_height == 120
    controller.stop()


def test_failed_dataset_keeps_previous_rows() -> None:
    source = FakeSource(
        advisor=[[_row("A", "10")], FetchError("HTTP 500", dataset="advisor")],
        technician=[[_row("T", "1")], [_row("U", "9"), _row("T", "1")]],
    )
    controller = _controller(source)

    async def run():
        await controller.refresh()
        advisor_board = await controller.refresh()
        tech_board = controller.select(dataset="technician")
        return advisor_board, tech_board

    advisor_board, tech_board = asyncio.run(run())

    assert [r.name for r in advisor_board.rows] == ["A"]
    assert advisor_board.stale is True
    assert "Fetch failed" in advisor_board.status
    assert controller.statuses[DatasetId.ADVISOR].ok is False
    assert [r.name for r in tech_board.rows] == ["U", "T"]
    assert controller.statuses[DatasetId.TECHNICIAN].ok is True
    controller.stop()


def test_first_fetch_failure_shows_empty_board() -> None:
    source = FakeSource(advisor=[FetchError("down")], technician=[[]])
    controller = _controller(source)

    board = asyncio.run(controller.refresh())

    assert board.rows == []
    assert board.stale is False
    assert "Fetch failed" in board.status


def test_unexpected_source_error_does_not_break_refresh() -> None:
    source = FakeSource(advisor=[RuntimeError("boom")], technician=[[_row("T", "1")]])
    controller = _controller(source)

    asyncio.run(controller.refresh())

    assert controller.statuses[DatasetId.ADVISOR].ok is False
    assert DatasetId.TECHNICIAN in controller.cache


def test_leader_change_notifies_once() -> None:
    sink = FakeSink()
    source = FakeSource(
        advisor=[
            [_row("A", "10"), _row("B", "3")],
            [_row("A", "10"), _row("B", "30")],
            [_row("A", "10"), _row("B", "30")],
        ],
        technician=[[]],
    )
    controller = _controller(source, sink=sink)

    async def run():
        for _ in range(3):
            await controller.refresh()

    asyncio.run(run())

    assert len(sink.changes) == 1
    change = sink.changes[0]
    assert (change.dataset, change.mode) == (DatasetId.ADVISOR, Mode.TODAY)
    assert (change.previous, change.current) == ("A", "B")


def test_empty_dataset_emits_no_leader_event() -> None:
    sink = FakeSink()
    source = FakeSource(advisor=[[]], technician=[[]])
    controller = _controller(source, sink=sink)

    async def run():
        await controller.refresh()
        return await controller.refresh()

    board = asyncio.run(run())

    assert board.rows == []
    assert sink.changes == []
    assert controller.animator.active is False


def test_failing_sink_does_not_break_refresh() -> None:
    class BrokenSink:
        async def notify(self, change):
            raise RuntimeError("speaker unplugged")

    source = FakeSource(
        advisor=[[_row("A", "1"), _row("B", "0")], [_row("A", "1"), _row("B", "5")]],
        technician=[[]],
    )
    controller = _controller(source, sink=BrokenSink())

    async def run():
        await controller.refresh()
        return await controller.refresh()

    board = asyncio.run(run())
    assert board.rows[0].name == "B"


def test_invalid_selection_keeps_view() -> None:
    controller = _controller(FakeSource(advisor=[[]], technician=[[]]))

    with pytest.raises(ConfigError):
        controller.select(mode="total", dataset="nobody")

    assert controller.view.mode is Mode.TODAY
    assert controller.view.dataset is DatasetId.ADVISOR


def test_rotate_renders_next_board() -> None:
    source = FakeSource(advisor=[[_row("A", "1")]], technician=[[_row("T", "1")]])
    surface = MemorySurface()
    controller = _controller(source, surface=surface)

    async def run():
        await controller.refresh()
        return controller.rotate()

    board = asyncio.run(run())

    assert board.dataset is DatasetId.TECHNICIAN
    assert board.mode is Mode.TODAY
    assert surface.renders == 2
    controller.stop()


def test_start_arms_timers_and_stop_tears_down_everything() -> None:
    source = FakeSource(
        advisor=[[_row(str(i), str(i)) for i in range(10)]],
        technician=[[]],
    )
    controller = _controller(source)

    async def run():
        await controller.start()
        names = sorted(h.name for h in controller.ticker.handles)
        assert names == ["refresh", "rotation"]
        assert controller.ticker.running
        assert controller.animator.active
        controller.stop()
        assert not controller.ticker.running
        assert not controller.animator.active
        assert controller.ticker.handles == []

    asyncio.run(run())


def test_boards_render_without_changing_view() -> None:
    source = FakeSource(advisor=[[_row("A", "1")]], technician=[[_row("T", "1")]])
    controller = _controller(source)
    asyncio.run(controller.refresh())

    boards = controller.boards([(Mode.TOTAL, DatasetId.TECHNICIAN), (Mode.TODAY, DatasetId.ADVISOR)])

    assert [b.title for b in boards] == ["Technician Total", "Advisor Today"]
    assert controller.view.dataset is DatasetId.ADVISOR
    controller.stop()


def test_simultaneous_leader_changes_notify_once_per_refresh() -> None:
    sink = FakeSink()
    # Feed order flips too, so the all-zero "total" boards change leader as well
    source = FakeSource(
        advisor=[[_row("A", "10"), _row("B", "3")], [_row("B", "30"), _row("A", "10")]],
        technician=[[_row("X", "10"), _row("Y", "3")], [_row("Y", "30"), _row("X", "10")]],
    )
    controller = _controller(source, sink=sink)

    async def run():
        await controller.refresh()
        await controller.refresh()

    asyncio.run(run())

    assert len(sink.changes) == 1
    change = sink.changes[0]
    assert (change.dataset, change.mode) == (DatasetId.ADVISOR, Mode.TODAY)
    assert (change.previous, change.current) == ("A", "B")
    # every board still tracks its new leader
    assert controller.leaders.record(DatasetId.TECHNICIAN, Mode.TOTAL).top_name == "Y"
    controller.stop()


def test_leader_change_off_screen_is_announced_when_alone() -> None:
    sink = FakeSink()
    source = FakeSource(
        advisor=[[_row("A", "10")]],
        technician=[[_row("X", "10"), _row("Y", "3")], [_row("X", "10"), _row("Y", "30")]],
    )
    controller = _controller(source, sink=sink)

    async def run():
        await controller.refresh()
        await controller.refresh()

    asyncio.run(run())

    assert [(c.dataset, c.mode, c.current) for c in sink.changes] == [
        (DatasetId.TECHNICIAN, Mode.TODAY, "Y")
    ]
    controller.stop()


class GatedSource:
    """Holds every fetch until `gate` is set."""

    def __init__(self, rows):
        self.rows = rows
        self.gate = asyncio.Event()

    async def fetch(self, dataset):
        await self.gate.wait()
        return self.rows


def test_refresh_completing_after_stop_is_discarded() -> None:
    surface = MemorySurface()

    async def run():
        source = GatedSource([_row(str(i), str(i)) for i in range(10)])
        controller = _controller(source, surface=surface)
        pending = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0.01)

        controller.stop()
        source.gate.set()
        board = await pending
        await asyncio.sleep(0.05)
        return controller, board

    controller, board = asyncio.run(run())

    assert board is None
    assert surface.renders == 0
    assert controller.cache == {}
    assert controller.animator.active is False
    assert controller.animator.offset == 0
