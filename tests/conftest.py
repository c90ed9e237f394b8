"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import sys
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import EngineSettings
from src.db.schema import Base
from src.engine.process import EngineProcess

FAKE_ENGINE = Path(__file__).parent / "fake_engine.py"
RESPONSE_TIMEOUT = 10.0


def fake_engine_command(*flags: str) -> list[str]:
    """Command line of the scripted engine, run with the interpreter running the tests."""
    return [sys.executable, str(FAKE_ENGINE), *flags]


# --- ENGINE ---
@pytest.fixture
def engine_settings() -> EngineSettings:
    """Lets a chessboard launch (and own) its own fake engine."""
    return EngineSettings(
        executable=Path(sys.executable),
        arguments=[str(FAKE_ENGINE)],
        name="fake_engine",
        response_timeout=RESPONSE_TIMEOUT,
    )


@pytest.fixture
def engine_process() -> Generator[EngineProcess, None, None]:
    """A running fake engine, closed at teardown."""
    process = EngineProcess(fake_engine_command(), name="fake_engine", response_timeout=RESPONSE_TIMEOUT)
    process.start()
    try:
        yield process
    finally:
        process.close()


@pytest.fixture
def fake_engine() -> Generator[Callable[..., EngineProcess], None, None]:
    """
    Factory for fake engines with extra command line flags (e.g. '--hang-on', 'isready').
    Pass started=False to get the process before start(). Every process it created is closed at teardown.
    """
    created: list[EngineProcess] = []

    def create(*flags: str, started: bool = True, **kwargs: Any) -> EngineProcess:
        kwargs.setdefault("name", "fake_engine")
        kwargs.setdefault("response_timeout", RESPONSE_TIMEOUT)
        process = EngineProcess(fake_engine_command(*flags), **kwargs)
        created.append(process)
        if started:
            process.start()
        return process

    yield create
    for process in created:
        process.close()


# --- DATABASE ---
# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
