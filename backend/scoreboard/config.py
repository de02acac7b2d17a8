"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scoreboard.exceptions import ConfigError
from scoreboard.models import DatasetId, Mode
from scoreboard.services.sheets.config import DatasetSource, SheetsConfig
from scoreboard.view import DEFAULT_ROTATION

logger = logging.getLogger(__name__)


class TimersConfig(BaseModel):
    """Refresh, rotation and scroll timing."""

    refresh_interval_ms: int = Field(default=30_000, gt=0)
    rotation_interval_ms: int = Field(default=60_000, gt=0)
    scroll_speed: float = Field(default=1.0, gt=0)  # pixels per frame
    frame_rate: float = Field(default=60.0, gt=0)
    scroll_spacer_px: float = Field(default=0.0, ge=0)

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_interval_ms / 1000

    @property
    def rotation_interval_seconds(self) -> float:
        return self.rotation_interval_ms / 1000


class DisplayConfig(BaseModel):
    """Board presentation."""

    title_prefix: str = ""
    top_n: int = Field(default=3, ge=0)
    unknown_name: str = "Unknown"
    # Used to estimate the scrollable height of the rendered list
    row_height_px: float = Field(default=64.0, gt=0)
    viewport_height_px: float = Field(default=720.0, gt=0)


class DatasetConfig(DatasetSource):
    """Feed location plus per-dataset display columns."""

    # label -> column; empty shows the current mode's score columns
    columns: dict[str, str] = Field(default_factory=dict)
    top_n: int | None = None


class RotationConfig(BaseModel):
    """Auto-rotation between boards."""

    enabled: bool = True
    sequence: list[tuple[Mode, DatasetId]] = Field(
        default_factory=lambda: list(DEFAULT_ROTATION)
    )


class AlertsConfig(BaseModel):
    """Where leader changes are announced."""

    log_enabled: bool = True
    telegram_enabled: bool = False


class ServerConfig(BaseModel):
    """Dashboard HTTP API."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


def _default_datasets() -> dict[DatasetId, DatasetConfig]:
    return {dataset: DatasetConfig() for dataset in DatasetId}


SECTIONS = ["timers", "display", "rotation", "alerts", "server", "sheets"]


class Settings(BaseSettings):
    """Main configuration class."""

    data_dir: Path = Path("data")

    logfire_token: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    timers: TimersConfig = Field(default_factory=TimersConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    datasets: dict[DatasetId, DatasetConfig] = Field(default_factory=_default_datasets)
    rotation: RotationConfig = Field(default_factory=RotationConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.yaml"

    def apply_yaml(self, yaml_config: dict) -> None:
        """Merge a parsed config.yaml mapping over the current values."""
        try:
            for section_name in SECTIONS:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    section_dict = section.model_dump()
                    section_dict.update(yaml_config[section_name] or {})
                    setattr(self, section_name, section.__class__(**section_dict))

            for key, overrides in (yaml_config.get("datasets") or {}).items():
                try:
                    dataset = DatasetId(key)
                except ValueError:
                    raise ConfigError(f"Unknown dataset in config: {key!r}") from None
                current = self.datasets.get(dataset, DatasetConfig()).model_dump()
                current.update(overrides or {})
                self.datasets[dataset] = DatasetConfig(**current)

        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Malformed configuration section: {e}") from e

    def load_yaml_config(self) -> None:
        """Load and merge data/config.yaml if present."""
        config_path = self.config_path

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m scoreboard init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e

        if not yaml_config:
            logger.warning(f"Empty config file: {config_path}")
            return
        if not isinstance(yaml_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping")

        self.apply_yaml(yaml_config)
        logger.info(f"Loaded configuration from {config_path}")


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
