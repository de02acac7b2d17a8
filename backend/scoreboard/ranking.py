"""Ranking and leader-change detection."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from scoreboard.models import DatasetId, LeaderChange, LeaderRecord, Mode, RankedRow, Row
from scoreboard.scoring import score

logger = logging.getLogger(__name__)

DEFAULT_NAME_FIELDS = ("Name", "Advisor Name", "Technician Name")


def resolve_name(row: Row, name_fields: Iterable[str] = DEFAULT_NAME_FIELDS) -> str:
    """First non-blank identity field, or an empty string."""
    for field in name_fields:
        value = row.get(field)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def rank(
    rows: Sequence[Row],
    mode: Mode,
    name_fields: Iterable[str] = DEFAULT_NAME_FIELDS,
) -> list[RankedRow]:
    """Sort rows by score descending and assign ranks 1..n.

    Python's sort is stable, so rows with equal scores keep their feed order.
    """
    name_fields = tuple(name_fields)
    scored = [(score(row, mode), row) for row in rows]
    scored.sort(key=lambda item: item[0], reverse=True)

    return [
        RankedRow(
            row=dict(row),
            name=resolve_name(row, name_fields),
            score=value,
            rank=index,
        )
        for index, (value, row) in enumerate(scored, 1)
    ]


class LeaderTracker:
    """Remembers the rank-1 name per (dataset, mode) board.

    The first observation of a board only seeds its record; a change is
    reported from the second observation on.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[DatasetId, Mode], LeaderRecord] = {}

    def record(self, dataset: DatasetId, mode: Mode) -> LeaderRecord:
        return self._records.setdefault((dataset, mode), LeaderRecord())

    def observe(
        self,
        dataset: DatasetId,
        mode: Mode,
        ranked: Sequence[RankedRow],
    ) -> LeaderChange | None:
        if not ranked:
            return None

        leader = ranked[0]
        if not leader.name:
            return None

        record = self.record(dataset, mode)
        previous = record.top_name
        if previous == leader.name:
            return None

        record.top_name = leader.name
        if not previous:
            logger.debug(f"Seeded {dataset.value}/{mode.value} leader: {leader.name}")
            return None

        logger.info(
            f"Leader changed on {dataset.value}/{mode.value}: {previous} -> {leader.name}"
        )
        return LeaderChange(
            dataset=dataset,
            mode=mode,
            previous=previous,
            current=leader.name,
            score=leader.score,
        )

    def reset(self) -> None:
        self._records.clear()
