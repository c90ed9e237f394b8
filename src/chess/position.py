"""
Read-only view of everything a FEN string says about a position, for display purposes.

The engine remains the authority on the position: nothing here is ever used to decide what is legal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.chess.fen import assert_fen_validity
from src.chess.pieces import Color
from src.chess.square import Square

NO_CASTLING = "-"
NO_EN_PASSANT = "-"


class CastlingRight(Enum):
    """Value is the letter used in FEN. Declared in the order FEN lists them."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"


def parse_castling_rights(field: str) -> frozenset[CastlingRight]:
    if field == NO_CASTLING:
        return frozenset()
    return frozenset(CastlingRight(letter) for letter in field)


def format_castling_rights(rights: frozenset[CastlingRight]) -> str:
    return "".join(right.value for right in CastlingRight if right in rights) or NO_CASTLING


@dataclass(frozen=True)
class PositionState:
    """
    The six FEN fields, parsed.
    ----

    ex) after 1. e4 the FEN reads
    rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1
    i.e. the piece placement, Black to move, every castling right left, no en passant capture possible,
    0 half moves since the last capture or pawn move, and still the first full move.
    """

    placement: str
    active_color: Color
    castling_rights: frozenset[CastlingRight]
    en_passant: Optional[Square]
    halfmove_clock: int
    fullmove_number: int

    @classmethod
    def from_fen(cls, fen: str) -> PositionState:
        assert_fen_validity(fen)
        placement, active, castling, en_passant, halfmove, fullmove = fen.split(" ")
        return cls(
            placement=placement,
            active_color=Color(active),
            castling_rights=parse_castling_rights(castling),
            en_passant=None if en_passant == NO_EN_PASSANT else Square.from_algebraic(en_passant),
            halfmove_clock=int(halfmove),
            fullmove_number=int(fullmove),
        )

    def to_fen(self) -> str:
        en_passant = self.en_passant.to_algebraic() if self.en_passant is not None else NO_EN_PASSANT
        return " ".join(
            [
                self.placement,
                self.active_color.value,
                format_castling_rights(self.castling_rights),
                en_passant,
                str(self.halfmove_clock),
                str(self.fullmove_number),
            ]
        )

    def can_castle(self, right: CastlingRight) -> bool:
        return right in self.castling_rights
