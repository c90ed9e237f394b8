"""
A move on the board, as the engine understands it.

No movement rules live here: which moves are legal is always asked from the engine.
This module only knows how to write a move down (UCI notation) and how to pack it into a small integer for saving.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Optional

from src.chess.square import NUM_SQUARES, Square
from src.core.exceptions import InvalidMoveHashError, InvalidMoveNotationError

UCI_MOVE_PATTERN = re.compile(r"([a-h][1-8])([a-h][1-8])([qrbn])?")


class Promotion(Enum):
    """Piece a pawn gets promoted into. The value is its 3-bit code inside the move hash."""

    NONE = 0
    ROOK = 1
    KNIGHT = 2
    BISHOP = 3
    QUEEN = 4

    @classmethod
    def from_char(cls, character: Optional[str]) -> Promotion:
        if not character:
            return cls.NONE
        return CHAR_TO_PROMOTION[character]

    def to_char(self) -> str:
        return PROMOTION_TO_CHAR.get(self, "")


CHAR_TO_PROMOTION: dict[str, Promotion] = {
    "r": Promotion.ROOK,
    "n": Promotion.KNIGHT,
    "b": Promotion.BISHOP,
    "q": Promotion.QUEEN,
}

PROMOTION_TO_CHAR: dict[Promotion, str] = {value: key for key, value in CHAR_TO_PROMOTION.items()}


# --- HASH LAYOUT ---
# bits 9-14: square from, bits 3-8: square to, bits 0-2: promotion
FROM_SHIFT = 9
TO_SHIFT = 3
SQUARE_MASK = NUM_SQUARES - 1
PROMOTION_MASK = 0b111
MAX_MOVE_HASH = (SQUARE_MASK << FROM_SHIFT) | (SQUARE_MASK << TO_SHIFT) | Promotion.QUEEN.value


@total_ordering
@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promotion: Promotion = Promotion.NONE

    @classmethod
    def from_uci(cls, uci: str) -> Move:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side (the engine knows, we do not need to)
        """
        match = UCI_MOVE_PATTERN.fullmatch(uci.strip())
        if match is None:
            raise InvalidMoveNotationError(f"Illegal UCI move notation: {uci!r}")
        from_sq, to_sq, promotion = match.groups()
        return cls(
            Square.from_algebraic(from_sq),
            Square.from_algebraic(to_sq),
            Promotion.from_char(promotion),
        )

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{self.promotion.to_char()}"

    @classmethod
    def from_hash_code(cls, code: int) -> Move:
        """Unpack a move hash (see `hash_code()`). Fails for codes no move can produce."""
        if not 0 <= code <= MAX_MOVE_HASH:
            raise InvalidMoveHashError(f"Move hash code out of range: {code}")

        promotion_code = code & PROMOTION_MASK
        if promotion_code > Promotion.QUEEN.value:
            raise InvalidMoveHashError(f"Invalid promotion bits in move hash code: {code}")

        return cls(
            Square.from_hash_code((code >> FROM_SHIFT) & SQUARE_MASK),
            Square.from_hash_code((code >> TO_SHIFT) & SQUARE_MASK),
            Promotion(promotion_code),
        )

    def hash_code(self) -> int:
        """Pack from/to/promotion into [0, 32764], small enough for a signed 16-bit integer."""
        return (
            (self.from_square.hash_code() << FROM_SHIFT)
            | (self.to_square.hash_code() << TO_SHIFT)
            | self.promotion.value
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Move):
            return NotImplemented
        return self.hash_code() < other.hash_code()

    def __str__(self) -> str:
        return self.to_uci()
