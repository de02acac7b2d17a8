"""Weighted score for a leaderboard row."""

import math

from scoreboard.models import Mode, Row

LOAD_WEIGHT = 2
LABOUR_WEIGHT = 3
VAS_WEIGHT = 1

# (load, labour, vas) column names per scoring period
SCORE_COLUMNS: dict[Mode, tuple[str, str, str]] = {
    Mode.TODAY: ("Today Load", "Today Labour", "Today VAS"),
    Mode.TOTAL: ("Total Load", "Month Labour", "Total VAS"),
}


def parse_number(value: object) -> float:
    """Best-effort numeric coercion. Anything unparseable is 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def score_columns(mode: Mode) -> tuple[str, str, str]:
    return SCORE_COLUMNS[Mode(mode)]


def score(row: Row, mode: Mode) -> float:
    """Return load*2 + labour*3 + vas for the given period."""
    load_col, labour_col, vas_col = score_columns(mode)
    total = (
        parse_number(row.get(load_col)) * LOAD_WEIGHT
        + parse_number(row.get(labour_col)) * LABOUR_WEIGHT
        + parse_number(row.get(vas_col)) * VAS_WEIGHT
    )
    return total if math.isfinite(total) else 0.0


def display_score(value: float) -> int:
    """Round half-up for display; ranking keeps the float."""
    return math.floor(value + 0.5)
