"""Unit tests for src/api/models.py"""

import pytest
from pydantic import ValidationError

from src.api.models import SavedGamePayload
from src.chess.fen import STARTING_FEN
from src.chess.moves import Move
from src.core.models import SavedGame

E2E4 = Move.from_uci("e2e4").hash_code()
E7E5 = Move.from_uci("e7e5").hash_code()


def test_valid_payload() -> None:
    payload = SavedGamePayload(starting_fen=STARTING_FEN, moves=[E2E4, E7E5], done_moves_count=1)
    assert payload.moves_uci() == ["e2e4", "e7e5"]


def test_payload_from_json() -> None:
    payload = SavedGamePayload.model_validate_json(
        f'{{"starting_fen": "{STARTING_FEN}", "moves": [{E2E4}], "done_moves_count": 0}}'
    )
    assert payload.to_saved_game() == SavedGame(starting_fen=STARTING_FEN, moves=[E2E4], done_moves_count=0)


def test_conversion_from_saved_game() -> None:
    saved = SavedGame(starting_fen=STARTING_FEN, moves=[E2E4, E7E5], done_moves_count=2)
    payload = SavedGamePayload.from_saved_game(saved)
    assert payload.starting_fen == STARTING_FEN
    assert payload.moves == [E2E4, E7E5]
    assert payload.done_moves_count == 2


def test_invalid_fen() -> None:
    with pytest.raises(ValidationError):
        SavedGamePayload(starting_fen="8/8/8 w - - 0 1", moves=[], done_moves_count=0)


@pytest.mark.parametrize("code", [-1, 7, 32765, 2**15, 2**20])
def test_invalid_move_hash(code: int) -> None:
    with pytest.raises(ValidationError):
        SavedGamePayload(starting_fen=STARTING_FEN, moves=[E2E4, code], done_moves_count=0)


@pytest.mark.parametrize("count", [-1, 3])
def test_invalid_done_moves_count(count: int) -> None:
    with pytest.raises(ValidationError):
        SavedGamePayload(starting_fen=STARTING_FEN, moves=[E2E4, E7E5], done_moves_count=count)


def test_missing_field() -> None:
    with pytest.raises(ValidationError):
        SavedGamePayload.model_validate({"starting_fen": STARTING_FEN, "moves": []})
