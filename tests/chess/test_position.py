"""Unit tests for src/chess/position.py"""

import pytest

from src.chess.fen import STARTING_FEN
from src.chess.pieces import Color
from src.chess.position import (
    CastlingRight,
    PositionState,
    format_castling_rights,
    parse_castling_rights,
)
from src.chess.square import Square
from src.core.exceptions import InvalidFENError

KINGS_ONLY = "4k3/8/8/8/8/8/8/4K3"


@pytest.mark.parametrize(
    "field, rights",
    [
        ("KQkq", set(CastlingRight)),
        ("KQk", {CastlingRight.WHITE_KING_SIDE, CastlingRight.WHITE_QUEEN_SIDE, CastlingRight.BLACK_KING_SIDE}),
        ("Qq", {CastlingRight.WHITE_QUEEN_SIDE, CastlingRight.BLACK_QUEEN_SIDE}),
        ("k", {CastlingRight.BLACK_KING_SIDE}),
        ("-", set()),
    ],
)
def test_castling_rights(field: str, rights: set[CastlingRight]) -> None:
    assert parse_castling_rights(field) == rights
    assert format_castling_rights(frozenset(rights)) == field


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_FEN,
        "r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1 b kq - 3 9",
        f"{KINGS_ONLY} w - - 0 1",
        "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
    ],
)
def test_fen_parsing_roundtrip(fen: str) -> None:
    """The fields are written back in the order they were read"""
    assert PositionState.from_fen(fen).to_fen() == fen


def test_starting_position() -> None:
    state = PositionState.from_fen(STARTING_FEN)
    assert state.placement == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
    assert state.active_color == Color.WHITE
    assert all(state.can_castle(right) for right in CastlingRight)
    assert state.en_passant is None
    assert state.halfmove_clock == 0
    assert state.fullmove_number == 1


@pytest.mark.parametrize("code, color", [("w", Color.WHITE), ("b", Color.BLACK)])
def test_active_color(code: str, color: Color) -> None:
    assert PositionState.from_fen(f"{KINGS_ONLY} {code} - - 0 1").active_color == color


@pytest.mark.parametrize("field, square", [("-", None), ("e3", Square(2, 4)), ("d6", Square(5, 3))])
def test_en_passant(field: str, square: Square | None) -> None:
    assert PositionState.from_fen(f"{KINGS_ONLY} w - {field} 0 1").en_passant == square


def test_move_counters() -> None:
    state = PositionState.from_fen(f"{KINGS_ONLY} w - - 6 23")
    assert state.halfmove_clock == 6
    assert state.fullmove_number == 23


def test_lost_castling_rights() -> None:
    state = PositionState.from_fen("r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1 b kq - 3 9")
    assert not state.can_castle(CastlingRight.WHITE_KING_SIDE)
    assert state.can_castle(CastlingRight.BLACK_QUEEN_SIDE)


def test_invalid_fen_is_rejected() -> None:
    with pytest.raises(InvalidFENError):
        PositionState.from_fen("8/8/8/8/8/8/8/8 w - - 0 1")
