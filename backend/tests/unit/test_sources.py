"""Unit tests for concurrent dataset fetching."""

import asyncio
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scoreboard.exceptions import FetchError
from scoreboard.models import DatasetId
from scoreboard.sources import fetch_all


class RendezvousSource:
    """Each fetch waits until every expected fetch has started."""

    def __init__(self, expected: int):
        self.expected = expected
        self.started = 0
        self.all_started = asyncio.Event()

    async def fetch(self, dataset):
        self.started += 1
        if self.started == self.expected:
            self.all_started.set()
        try:
            await asyncio.wait_for(self.all_started.wait(), timeout=1.0)
        except asyncio.TimeoutError:
            raise FetchError("fetched alone", dataset=dataset.value) from None
        return [{"Name": dataset.value}]


class SlowSource:
    def __init__(self, delay: float):
        self.delay = delay

    async def fetch(self, dataset):
        await asyncio.sleep(self.delay)
        return [{"Name": dataset.value}]


def test_fetches_are_in_flight_together() -> None:
    async def run():
        source = RendezvousSource(expected=2)
        return await fetch_all(source, [DatasetId.ADVISOR, DatasetId.TECHNICIAN])

    outcome = asyncio.run(run())

    assert outcome == {
        DatasetId.ADVISOR: [{"Name": "advisor"}],
        DatasetId.TECHNICIAN: [{"Name": "technician"}],
    }


def test_latency_is_the_slowest_fetch_not_the_sum() -> None:
    async def run():
        started = time.monotonic()
        outcome = await fetch_all(SlowSource(0.2), [DatasetId.ADVISOR, DatasetId.TECHNICIAN])
        return outcome, time.monotonic() - started

    outcome, elapsed = asyncio.run(run())

    assert set(outcome) == {DatasetId.ADVISOR, DatasetId.TECHNICIAN}
    assert elapsed < 0.35


def test_unexpected_errors_become_fetch_errors() -> None:
    class Broken:
        async def fetch(self, dataset):
            if dataset is DatasetId.ADVISOR:
                raise RuntimeError("boom")
            return []

    outcome = asyncio.run(fetch_all(Broken(), [DatasetId.ADVISOR, DatasetId.TECHNICIAN]))

    assert isinstance(outcome[DatasetId.ADVISOR], FetchError)
    assert outcome[DatasetId.ADVISOR].dataset == "advisor"
    assert outcome[DatasetId.TECHNICIAN] == []
