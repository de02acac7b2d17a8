"""Core data models shared by the fetch, rank and render stages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

# A fetched spreadsheet row: column name -> raw cell text.
Row = dict[str, str]


class Mode(str, Enum):
    """Scoring period."""

    TODAY = "today"
    TOTAL = "total"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class DatasetId(str, Enum):
    """Logical dataset identifiers."""

    ADVISOR = "advisor"
    TECHNICIAN = "technician"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class RankedRow(BaseModel):
    """A row with its computed score and 1-based rank."""

    row: dict[str, str]
    name: str
    score: float
    rank: int


class ViewState(BaseModel):
    """Currently displayed board."""

    mode: Mode = Mode.TODAY
    dataset: DatasetId = DatasetId.ADVISOR

    @property
    def key(self) -> tuple[DatasetId, Mode]:
        return (self.dataset, self.mode)


class LeaderRecord(BaseModel):
    """Last known rank-1 name for one board. Empty until first observed."""

    top_name: str = ""


class LeaderChange(BaseModel):
    """Emitted when the rank-1 name of a board changes."""

    dataset: DatasetId
    mode: Mode
    previous: str
    current: str
    score: float
    detected_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __str__(self) -> str:
        return (
            f"New {self.dataset.value} leader ({self.mode.value}): "
            f"{self.current} (was {self.previous})"
        )


class DisplayRecord(BaseModel):
    """One rendered leaderboard line."""

    rank: int
    name: str
    metrics: dict[str, str] = Field(default_factory=dict)
    score: int
    picture: str | None = None
    category: str | None = None


class DatasetStatus(BaseModel):
    """Outcome of the most recent fetch of one dataset."""

    dataset: DatasetId
    ok: bool = False
    message: str = "Waiting for first refresh"
    fetched_at: datetime | None = None
    row_count: int = 0


class Leaderboard(BaseModel):
    """Everything a display surface needs to draw one view."""

    title: str
    dataset: DatasetId
    mode: Mode
    rows: list[DisplayRecord] = Field(default_factory=list)
    top: list[DisplayRecord] = Field(default_factory=list)
    status: str = ""
    stale: bool = False
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
