"""Scoreboard exceptions."""


class ScoreboardError(Exception):
    """Base scoreboard exception."""

    pass


class FetchError(ScoreboardError):
    """Remote feed could not be fetched or decoded."""

    def __init__(
        self,
        message: str,
        dataset: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.dataset = dataset
        self.status_code = status_code


class ParseError(ScoreboardError):
    """A single row or field could not be interpreted."""

    pass


class ConfigError(ScoreboardError):
    """Invalid configuration or view selection."""

    pass
