"""Projection of ranked rows into display records."""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, Field

from scoreboard.models import DisplayRecord, Leaderboard, RankedRow, ViewState
from scoreboard.scoring import display_score, score_columns


class RenderOptions(BaseModel):
    """Presentation knobs for one dataset."""

    title_prefix: str = ""
    top_n: int = Field(default=3, ge=0)
    unknown_name: str = "Unknown"
    # label -> column; an empty mapping shows the mode's score columns
    columns: dict[str, str] = Field(default_factory=dict)
    picture_column: str = "PIC"
    category_column: str = "CATEGORY"


def _metric_columns(view: ViewState, options: RenderOptions) -> dict[str, str]:
    if options.columns:
        return options.columns
    load_col, labour_col, vas_col = score_columns(view.mode)
    return {"Load": load_col, "Labour": labour_col, "VAS": vas_col}


def _optional(row: dict[str, str], column: str) -> str | None:
    value = (row.get(column) or "").strip()
    return value or None


def to_record(
    ranked: RankedRow,
    columns: dict[str, str],
    options: RenderOptions,
) -> DisplayRecord:
    row = ranked.row
    return DisplayRecord(
        rank=ranked.rank,
        name=ranked.name or options.unknown_name,
        metrics={label: row.get(column) or "0" for label, column in columns.items()},
        score=display_score(ranked.score),
        picture=_optional(row, options.picture_column),
        category=_optional(row, options.category_column),
    )


def board_title(view: ViewState, options: RenderOptions) -> str:
    parts = [options.title_prefix, view.dataset.label, view.mode.label]
    return " ".join(part for part in parts if part)


def render(
    ranked: Sequence[RankedRow],
    view: ViewState,
    options: RenderOptions | None = None,
    status: str = "",
    stale: bool = False,
) -> Leaderboard:
    """Build the full board and its top-N podium. Inputs are not modified."""
    options = options or RenderOptions()
    columns = _metric_columns(view, options)
    rows = [to_record(item, columns, options) for item in ranked]

    return Leaderboard(
        title=board_title(view, options),
        dataset=view.dataset,
        mode=view.mode,
        rows=rows,
        top=rows[: options.top_n],
        status=status,
        stale=stale,
    )
