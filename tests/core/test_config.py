"""Unit tests for src/core/config.py"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.core.config import (
    DEFAULT_DATABASE_URL,
    EngineSettings,
    Settings,
    configure_logging,
    load_settings,
)

SETTINGS_TOML = """
[engine]
executable = "/usr/local/bin/stockfish"
arguments = ["--quiet"]
name = "stockfish"
response_timeout = 5.0
legal_moves_depth = 2

[engine.options]
Threads = 2
Hash = 64
UCI_Chess960 = true
Debug_Log_File = "engine.log"

[storage]
database_url = "sqlite:///games.db"
"""


def test_engine_settings_defaults() -> None:
    settings = EngineSettings(executable=Path("stockfish"))
    assert settings.arguments == []
    assert settings.name == "engine"
    assert settings.response_timeout == 10.0
    assert settings.shutdown_timeout == 2.0
    assert settings.legal_moves_depth == 1
    assert settings.options == {}


def test_command_line() -> None:
    settings = EngineSettings(executable=Path("/opt/engine"), arguments=["-a", "b"])
    assert settings.command_line() == ["/opt/engine", "-a", "b"]


@pytest.mark.parametrize(
    "field, value",
    [
        ("response_timeout", 0),
        ("response_timeout", -1.0),
        ("shutdown_timeout", 0),
        ("legal_moves_depth", 0),
        ("name", "not an identifier"),
        ("name", ""),
    ],
)
def test_invalid_engine_settings(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        EngineSettings.model_validate({"executable": "stockfish", field: value})


def test_load_settings(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(SETTINGS_TOML)

    settings = load_settings(path)
    assert isinstance(settings, Settings)
    assert settings.engine.executable == Path("/usr/local/bin/stockfish")
    assert settings.engine.arguments == ["--quiet"]
    assert settings.engine.name == "stockfish"
    assert settings.engine.response_timeout == 5.0
    assert settings.engine.legal_moves_depth == 2
    assert settings.engine.options == {
        "Threads": 2,
        "Hash": 64,
        "UCI_Chess960": True,
        "Debug_Log_File": "engine.log",
    }
    assert settings.storage.database_url == "sqlite:///games.db"


def test_storage_settings_are_optional(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text('[engine]\nexecutable = "stockfish"\n')

    settings = load_settings(path)
    assert settings.storage.database_url == DEFAULT_DATABASE_URL
    assert not settings.storage.echo


def test_engine_table_is_required(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text('[storage]\ndatabase_url = "sqlite:///games.db"\n')
    with pytest.raises(ValidationError):
        load_settings(path)


def test_configure_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(logging.DEBUG)
    assert calls[0]["level"] == logging.DEBUG
    assert "%(name)s" in str(calls[0]["format"])
