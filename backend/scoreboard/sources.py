"""Tabular data source interface and concurrent fetching."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Protocol

from scoreboard.exceptions import FetchError
from scoreboard.models import DatasetId, Row

logger = logging.getLogger(__name__)

FetchOutcome = dict[DatasetId, "list[Row] | FetchError"]


class TabularSource(Protocol):
    async def fetch(self, dataset: DatasetId) -> list[Row]: ...


async def fetch_all(source: TabularSource, datasets: Iterable[DatasetId]) -> FetchOutcome:
    """Fetch several datasets concurrently.

    Each entry holds either the rows or the FetchError for that dataset; one
    failure never affects the others.
    """
    datasets = list(datasets)
    results = await asyncio.gather(
        *(source.fetch(dataset) for dataset in datasets),
        return_exceptions=True,
    )

    outcome: FetchOutcome = {}
    for dataset, result in zip(datasets, results):
        if isinstance(result, FetchError):
            logger.warning(f"Fetch failed for {dataset.value}: {result}")
            outcome[dataset] = result
        elif isinstance(result, Exception):
            logger.error(f"Unexpected error fetching {dataset.value}: {result}", exc_info=result)
            outcome[dataset] = FetchError(
                str(result) or type(result).__name__, dataset=dataset.value
            )
        elif isinstance(result, BaseException):
            raise result
        else:
            outcome[dataset] = result
    return outcome
