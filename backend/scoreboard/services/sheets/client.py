"""Async client for published spreadsheet exports."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping

import httpx

from scoreboard.exceptions import FetchError
from scoreboard.models import DatasetId, Row
from scoreboard.sources import FetchOutcome, fetch_all

from .config import DatasetSource, SheetsConfig
from .parsing import keep_named, parse_payload

logger = logging.getLogger(__name__)


class SheetsClient:
    """Fetches dataset rows over HTTP. Use as an async context manager."""

    def __init__(
        self,
        sources: Mapping[DatasetId, DatasetSource],
        config: SheetsConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sources = {DatasetId(key): value for key, value in sources.items()}
        self.config = config or SheetsConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.info(
            f"Initialized SheetsClient ({len(self.sources)} datasets: "
            f"{', '.join(d.value for d in self.sources)})"
        )

    async def __aenter__(self) -> SheetsClient:
        limits = httpx.Limits(max_connections=self.config.max_connections)
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            limits=limits,
            follow_redirects=True,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed SheetsClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("SheetsClient must be used as async context manager")
        return self._client

    def source(self, dataset: DatasetId | str) -> DatasetSource:
        try:
            dataset = DatasetId(dataset)
            return self.sources[dataset]
        except (ValueError, KeyError):
            raise FetchError(f"No source configured for dataset {dataset!r}") from None

    async def _get(self, dataset: DatasetId, url: str) -> httpx.Response:
        retry_count = 0
        last_error: Exception | None = None

        while retry_count < self.config.max_retries:
            try:
                response = await self.client.get(url)

                if response.status_code == 429 or response.status_code >= 500:
                    last_error = FetchError(
                        f"HTTP {response.status_code}",
                        dataset=dataset.value,
                        status_code=response.status_code,
                    )
                    retry_count += 1
                    if retry_count < self.config.max_retries:
                        wait_time = self.config.backoff_base_seconds * 2 ** (retry_count - 1)
                        logger.warning(
                            f"{dataset.value}: HTTP {response.status_code}, "
                            f"retrying in {wait_time:g}s..."
                        )
                        await asyncio.sleep(wait_time)
                    continue

                if response.status_code >= 400:
                    raise FetchError(
                        f"HTTP {response.status_code} fetching {dataset.value}",
                        dataset=dataset.value,
                        status_code=response.status_code,
                    )

                return response

            except httpx.TimeoutException as e:
                last_error = e
                retry_count += 1
                if retry_count < self.config.max_retries:
                    logger.warning(f"{dataset.value}: timeout, retrying ({retry_count})...")
                    await asyncio.sleep(self.config.backoff_base_seconds)

            except httpx.RequestError as e:
                last_error = e
                logger.error(f"{dataset.value}: network error: {e}")
                break

        status_code = last_error.status_code if isinstance(last_error, FetchError) else None
        raise FetchError(
            f"Fetching {dataset.value} failed after {retry_count} attempts: {last_error}",
            dataset=dataset.value,
            status_code=status_code,
        )

    async def fetch(self, dataset: DatasetId | str) -> list[Row]:
        """Fetch and decode all rows of one dataset.

        Raises FetchError on network, HTTP or decoding failure.
        """
        source = self.source(dataset)
        dataset = DatasetId(dataset)
        if not source.url:
            raise FetchError(f"No URL configured for {dataset.value}", dataset=dataset.value)

        response = await self._get(dataset, source.url)

        try:
            rows = parse_payload(
                response.text,
                content_type=response.headers.get("content-type", ""),
                fmt=source.format,
            )
        except FetchError as e:
            e.dataset = dataset.value
            raise

        if source.skip_unnamed:
            rows = keep_named(rows, source.name_fields)

        logger.info(f"Fetched {len(rows)} {dataset.value} rows")
        return rows

    async def fetch_many(
        self, datasets: Iterable[DatasetId] | None = None
    ) -> FetchOutcome:
        """Fetch several datasets (default: all configured) concurrently."""
        return await fetch_all(self, datasets if datasets is not None else list(self.sources))


def create_sheets_client(
    sources: Mapping[DatasetId, DatasetSource],
    config: SheetsConfig | None = None,
) -> SheetsClient:
    """Create a SheetsClient with default HTTP settings."""
    return SheetsClient(sources=sources, config=config or SheetsConfig())
