"""
Settings for the engine process and the storage layer.

Can be built directly, or read from a TOML file:

    [engine]
    executable = "/usr/local/bin/stockfish"
    response_timeout = 5.0

    [engine.options]
    Threads = 2

    [storage]
    database_url = "sqlite:///games.db"
"""

import logging
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

OptionValue = str | int | float | bool

DEFAULT_DATABASE_URL = "sqlite:///:memory:"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class EngineSettings(BaseModel):
    """How to launch and talk to one external UCI engine."""

    executable: Path
    arguments: list[str] = Field(default_factory=list)
    name: str = "engine"
    response_timeout: float = 10.0
    shutdown_timeout: float = 2.0
    legal_moves_depth: int = 1
    options: dict[str, OptionValue] = Field(default_factory=dict)

    @field_validator("response_timeout", "shutdown_timeout")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"Timeouts must be positive, got {value}")
        return value

    @field_validator("legal_moves_depth")
    @classmethod
    def validate_depth(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Search depth must be at least 1, got {value}")
        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"Process name must be an identifier: {value!r}")
        return value

    def command_line(self) -> list[str]:
        return [str(self.executable), *self.arguments]


class StorageSettings(BaseModel):
    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False


class Settings(BaseModel):
    engine: EngineSettings
    storage: StorageSettings = Field(default_factory=StorageSettings)


def load_settings(path: str | Path) -> Settings:
    """Read settings from a TOML file with an [engine] and an optional [storage] table."""
    with open(path, "rb") as file:
        data = tomllib.load(file)
    return Settings.model_validate(data)


def configure_logging(level: int | str = logging.INFO, fmt: Optional[str] = None) -> None:
    """Route the package's loggers to stderr. Meant for applications, libraries should not call this."""
    logging.basicConfig(level=level, format=fmt or LOG_FORMAT)
