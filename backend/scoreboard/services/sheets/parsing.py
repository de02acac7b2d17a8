"""Decode CSV and JSON spreadsheet exports into plain string rows."""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Iterable

import pandas as pd

from scoreboard.exceptions import FetchError, ParseError
from scoreboard.models import Row
from scoreboard.ranking import resolve_name

from .config import SourceFormat

logger = logging.getLogger(__name__)

JSON_ROW_KEYS = ("rows", "data")


def _log_bad_line(fields: list[str]) -> None:
    logger.warning(f"Skipping malformed CSV line ({len(fields)} fields): {fields[:3]}")
    return None


def parse_csv(text: str) -> list[Row]:
    """First line is the header. Blank lines are skipped; cells stay text."""
    if not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_log_bad_line,
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise FetchError(f"Unreadable CSV export: {e}") from e

    df.columns = [str(column).strip() for column in df.columns]
    df = df.loc[:, [not column.startswith("Unnamed:") for column in df.columns]]
    df = df.fillna("")

    rows: list[Row] = df.to_dict(orient="records")
    return [row for row in rows if any(str(v).strip() for v in row.values())]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def parse_json(payload: Any) -> list[Row]:
    """Accept a list of objects, or an object holding one under rows/data."""
    if isinstance(payload, dict):
        for key in JSON_ROW_KEYS:
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            raise FetchError("JSON export has no row list")

    if not isinstance(payload, list):
        raise FetchError(f"JSON export must be a list, got {type(payload).__name__}")

    rows: list[Row] = []
    for index, item in enumerate(payload):
        try:
            rows.append(_json_row(item))
        except ParseError as e:
            logger.warning(f"Skipping JSON row {index}: {e}")
    return rows


def _json_row(item: Any) -> Row:
    if not isinstance(item, dict):
        raise ParseError(f"expected an object, got {type(item).__name__}")
    return {str(key).strip(): _cell(value) for key, value in item.items()}


def detect_format(text: str, content_type: str = "") -> str:
    content_type = content_type.lower()
    if "json" in content_type:
        return "json"
    if "csv" in content_type:
        return "csv"
    return "json" if text.lstrip()[:1] in ("[", "{") else "csv"


def parse_payload(text: str, content_type: str = "", fmt: SourceFormat = "auto") -> list[Row]:
    if fmt == "auto":
        fmt = detect_format(text, content_type)

    if fmt == "json":
        try:
            payload = json.loads(text) if text.strip() else []
        except json.JSONDecodeError as e:
            raise FetchError(f"Invalid JSON export: {e}") from e
        return parse_json(payload)

    return parse_csv(text)


def keep_named(rows: Iterable[Row], name_fields: Iterable[str]) -> list[Row]:
    """Drop rows with no usable identity."""
    name_fields = tuple(name_fields)
    return [row for row in rows if resolve_name(row, name_fields)]
