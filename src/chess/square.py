"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from src.core.exceptions import InvalidSquareError

# Chess board is always 8x8.
BOARD_DIMENSIONS = (8, 8)
NUM_SQUARES = BOARD_DIMENSIONS[0] * BOARD_DIMENSIONS[1]

SQUARE_PATTERN = re.compile(r"[a-h][1-8]")


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank ('a1' - 'h8')"""
    return SQUARE_PATTERN.fullmatch(square) is not None


def assert_square_validity(square: str) -> None:
    if not is_valid_square(square):
        raise InvalidSquareError(f"Cannot interpret supplied string as a square: {square!r}")


@total_ordering
@dataclass(frozen=True)
class Square:
    """Rank and file are both counted from 0: a1 is (0, 0), h8 is (7, 7)."""

    rank: int
    file: int

    def __post_init__(self) -> None:
        if not (0 <= self.rank < BOARD_DIMENSIONS[1] and 0 <= self.file < BOARD_DIMENSIONS[0]):
            raise InvalidSquareError(
                f"Square out of bounds: rank={self.rank}, file={self.file}"
            )

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (0,0) - (7,7)"""
        normalized = sq.strip().lower()
        assert_square_validity(normalized)
        file = ord(normalized[0]) - ord("a")
        rank = int(normalized[1]) - 1
        return cls(rank, file)

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a'))}{self.rank + 1}"

    @classmethod
    def from_hash_code(cls, code: int) -> Square:
        """Reverse of `hash_code()`"""
        if not 0 <= code < NUM_SQUARES:
            raise InvalidSquareError(f"Invalid square hash code: {code}")
        rank, file = divmod(code, BOARD_DIMENSIONS[0])
        return cls(rank, file)

    def hash_code(self) -> int:
        """Canonical integer encoding in [0, 63]. Every square has its own."""
        return BOARD_DIMENSIONS[0] * self.rank + self.file

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Square):
            return NotImplemented
        return self.hash_code() < other.hash_code()

    def __str__(self) -> str:
        return self.to_algebraic()
