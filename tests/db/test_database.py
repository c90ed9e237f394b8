"""Unit tests for src/db/database.py"""

from pathlib import Path

from src.core.config import StorageSettings
from src.core.models import SavedGame
from src.db.database import create_session_factory, get_db
from src.db.sql_repository import SQLGameRepository

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def test_in_memory_database_is_shared_between_sessions() -> None:
    factory = create_session_factory(StorageSettings())

    with factory() as session:
        _, game_id = SQLGameRepository(session).create_game(SavedGame(starting_fen=STARTING_FEN))
    with factory() as session:
        assert SQLGameRepository(session).get_game(game_id) is not None


def test_file_database(tmp_path: Path) -> None:
    settings = StorageSettings(database_url=f"sqlite:///{tmp_path / 'games.db'}")
    factory = create_session_factory(settings)

    with factory() as session:
        _, game_id = SQLGameRepository(session).create_game(SavedGame(starting_fen=STARTING_FEN, moves=[6368]))

    # tables are created once, a second factory finds the stored data
    with create_session_factory(settings)() as session:
        game = SQLGameRepository(session).get_game(game_id)
    assert game is not None
    assert game.moves == [6368]


def test_get_db_closes_the_session() -> None:
    factory = create_session_factory(StorageSettings())
    sessions = get_db(factory)
    session = next(sessions)
    assert SQLGameRepository(session).list_game_ids() == []
    sessions.close()
