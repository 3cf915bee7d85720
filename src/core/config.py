"""
Read-only configuration, loaded from <config_dir>/config.toml.

A missing file means defaults. A file that exists but cannot be used raises ConfigError.
"""

import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.core.exceptions import ConfigError
from src.network.server import DEFAULT_HOST, DEFAULT_PORT

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "chess-tui"
CONFIG_FILE_NAME = "config.toml"

LOG_LEVEL_NAMES = ["OFF", "ERROR", "WARN", "WARNING", "INFO", "DEBUG", "TRACE"]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    engine_path: Optional[str] = None
    log_level: str = "OFF"
    bot_depth: int = Field(default=10, ge=1, le=50)
    # None = full strength, 0..3 = Easy / Medium / Hard / Magnus
    bot_difficulty: Optional[int] = Field(default=None, ge=0, le=3)
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    database_url: str = "sqlite:///chess-tui.db"
    # None = no clock
    clock_seconds: Optional[int] = Field(default=None, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVEL_NAMES:
            raise ValueError(
                f"Unknown log level {value!r}. Pick one from {','.join(LOG_LEVEL_NAMES)}"
            )
        return level


def config_path(config_dir: Path = DEFAULT_CONFIG_DIR) -> Path:
    return config_dir / CONFIG_FILE_NAME


def load_settings(path: Optional[Path] = None) -> Settings:
    path = path if path is not None else config_path()
    if not path.exists():
        return Settings()

    try:
        with path.open("rb") as config_file:
            raw = tomllib.load(config_file)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc

    try:
        return Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration {path}: {exc}") from exc
