"""Configuration for the spreadsheet feed client."""

from typing import Literal

from pydantic import BaseModel

SourceFormat = Literal["csv", "json", "auto"]


class SheetsConfig(BaseModel):
    """HTTP settings shared by every dataset fetch."""

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    max_connections: int = 10
    user_agent: str = "scoreboard/0.1"


class DatasetSource(BaseModel):
    """Where and how to fetch one dataset."""

    url: str = ""
    format: SourceFormat = "auto"
    # Identity columns, tried in order
    name_fields: list[str] = ["Name", "Advisor Name", "Technician Name"]
    # Drop rows whose identity columns are all blank
    skip_unnamed: bool = True
