"""Published-spreadsheet feed client."""

from .client import SheetsClient, create_sheets_client
from .config import DatasetSource, SheetsConfig, SourceFormat
from .parsing import parse_csv, parse_json, parse_payload

__all__ = [
    "SheetsClient",
    "create_sheets_client",
    "DatasetSource",
    "SheetsConfig",
    "SourceFormat",
    "parse_csv",
    "parse_json",
    "parse_payload",
]
