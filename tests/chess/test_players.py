"""Unit tests for src/chess/players.py"""

import pytest
from pydantic import ValidationError

from src.chess.gameplay import GamePlayChessboard
from src.chess.pieces import Color
from src.chess.players import ComputerPlayer, PlayerConfiguration, PlayerKind
from src.core.exceptions import IllegalMoveError
from src.engine.process import EngineProcess

STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"


def test_configuration_defaults() -> None:
    configuration = PlayerConfiguration()
    assert configuration.player(Color.WHITE) == PlayerKind.HUMAN
    assert configuration.player(Color.BLACK) == PlayerKind.HUMAN
    assert configuration.skill_level == 20


def test_configuration_per_side() -> None:
    configuration = PlayerConfiguration(white="computer", black="human", skill_level=0)
    assert configuration.player(Color.WHITE) == PlayerKind.COMPUTER
    assert configuration.player(Color.BLACK) == PlayerKind.HUMAN


@pytest.mark.parametrize("fields", [{"skill_level": -1}, {"skill_level": 21}, {"search_depth": 0}, {"white": "robot"}])
def test_invalid_configuration(fields: dict) -> None:
    with pytest.raises(ValidationError):
        PlayerConfiguration(**fields)


def test_computer_answers_a_human_move(engine_process: EngineProcess) -> None:
    board = GamePlayChessboard(engine_process)
    computer = ComputerPlayer(board, PlayerConfiguration(black=PlayerKind.COMPUTER))
    assert not computer.is_to_move()
    assert computer.respond() == []

    board.perform_move("e2e4")
    assert computer.is_to_move()
    played = computer.respond()

    # the fake engine plays the first legal move in UCI order at full strength
    assert [move.to_uci() for move in played] == ["a7a5"]
    assert [move.to_uci() for move in board.done_moves()] == ["e2e4", "a7a5"]
    assert not computer.is_to_move()


def test_skill_level_reaches_the_engine(engine_process: EngineProcess) -> None:
    board = GamePlayChessboard(engine_process)
    board.perform_move("e2e4")
    weak = ComputerPlayer(board, PlayerConfiguration(black=PlayerKind.COMPUTER, skill_level=0))

    # below level 10 the fake engine plays the last legal move instead
    assert weak.play().to_uci() == "h7h6"


def test_boards_sharing_an_engine_keep_their_skill_level(engine_process: EngineProcess) -> None:
    strong_board = GamePlayChessboard(engine_process)
    weak_board = GamePlayChessboard(engine_process)
    strong = ComputerPlayer(strong_board, PlayerConfiguration(white=PlayerKind.COMPUTER, skill_level=20))
    weak = ComputerPlayer(weak_board, PlayerConfiguration(white=PlayerKind.COMPUTER, skill_level=3))

    assert weak.play().to_uci() == "h2h4"
    assert strong.play().to_uci() == "a2a3"


def test_human_turn(engine_process: EngineProcess) -> None:
    board = GamePlayChessboard(engine_process)
    computer = ComputerPlayer(board, PlayerConfiguration(black=PlayerKind.COMPUTER))
    with pytest.raises(IllegalMoveError):
        computer.play()
    assert board.done_moves() == []


def test_computer_against_computer(engine_process: EngineProcess) -> None:
    board = GamePlayChessboard(engine_process)
    computer = ComputerPlayer(board, PlayerConfiguration(white=PlayerKind.COMPUTER, black=PlayerKind.COMPUTER))

    played = computer.respond(max_moves=4)
    assert len(played) == 4
    assert board.done_moves() == played


def test_nothing_to_play(engine_process: EngineProcess) -> None:
    board = GamePlayChessboard(engine_process, STALEMATE)
    computer = ComputerPlayer(board, PlayerConfiguration(black=PlayerKind.COMPUTER))
    assert computer.play() is None
    assert computer.respond() == []
    assert board.current_fen() == STALEMATE
