"""Pieces as they show up in a chessboard's piece grid. Decoded from the FEN for display, never used for rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.core.exceptions import InvalidFENError


class PieceType(Enum):
    """Value is the piece's letter in FEN (lower case)"""

    EMPTY = ""
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


class Color(Enum):
    """Value is the FEN code of the side to move"""

    NONE = "-"
    WHITE = "w"
    BLACK = "b"


PIECE_LETTERS = frozenset(piece_type.value for piece_type in PieceType if piece_type is not PieceType.EMPTY)


@dataclass(frozen=True)
class Piece:
    type: PieceType = PieceType.EMPTY
    color: Color = Color.NONE

    @classmethod
    def from_fen(cls, letter: str) -> Piece:
        """Upper case letters are White's pieces, lower case Black's"""
        if letter.lower() not in PIECE_LETTERS:
            raise InvalidFENError(f"Not a piece letter: {letter!r}")
        return cls(PieceType(letter.lower()), Color.WHITE if letter.isupper() else Color.BLACK)

    def to_fen(self) -> str:
        return self.type.value.upper() if self.color == Color.WHITE else self.type.value

    @property
    def is_empty(self) -> bool:
        return self.type == PieceType.EMPTY


EMPTY_SQUARE = Piece()

# rank-major grid: grid[rank][file], rank 0 is the first rank (white's side)
PieceGrid = tuple[tuple[Piece, ...], ...]
