"""
Validation of FEN strings and decoding of the piece placement.

The engine is the one keeping track of positions. A FEN only gets checked here before it is sent to the engine,
and decoded into a piece grid for display.
"""

import random
from collections import Counter

from src.chess.pieces import EMPTY_SQUARE, PIECE_LETTERS, Piece, PieceGrid
from src.chess.square import BOARD_DIMENSIONS, SQUARE_PATTERN
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
VALID_CASTLING_ENCODINGS = [
    "-",
    "K",
    "Q",
    "k",
    "q",
    "KQ",
    "Kk",
    "Kq",
    "Qk",
    "Qq",
    "kq",
    "KQk",
    "KQq",
    "Kkq",
    "Qkq",
    "KQkq",
]

MAX_PAWNS = 8
MAX_NON_KING_PIECES = 15
EMPTY_RUN_CHARACTERS = "12345678"


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation, and describes a position that can exist.
    """

    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    position, color, castling, en_passant, half_move_counter, full_move_counter = parts
    if not is_valid_position(position):
        return False

    if not is_valid_color_code(color):
        return False

    if not is_valid_castling_rights(castling):
        return False

    if not is_valid_en_passant(en_passant):
        return False

    if not (
        is_valid_move_counter(half_move_counter)
        and is_valid_move_counter(full_move_counter)
    ):
        return False
    return True


def is_valid_position(position: str) -> bool:
    """
    Only check the part of the FEN encoding for the board position.

    * every rank has to cover exactly 8 files
    * exactly one king per side
    * at most 8 pawns per side, and never on the first or the last rank
    * at most 15 pieces other than the king per side
    """
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    counts: Counter[str] = Counter()
    for rank_idx, rank_fen in enumerate(rank_fens):
        is_back_rank = rank_idx in (0, num_ranks - 1)
        file_count = 0
        for character in rank_fen:
            if character in EMPTY_RUN_CHARACTERS:
                file_count += int(character)
            elif character.lower() in PIECE_LETTERS:
                if is_back_rank and character.lower() == "p":
                    return False
                counts[character] += 1
                file_count += 1
            else:
                # immediately invalidate if the character is anything else
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False

    for king, pawn in (("K", "P"), ("k", "p")):
        if counts[king] != 1:
            return False
        if counts[pawn] > MAX_PAWNS:
            return False
        same_side = [char for char in counts if char.isupper() == king.isupper()]
        if sum(counts[char] for char in same_side) - counts[king] > MAX_NON_KING_PIECES:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. or a '-' if all rights have been revoked."""
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square is on the 3rd or the 6th rank (right behind a pawn that just moved two squares) or a '-'"""
    if en_passant == "-":
        return True
    return SQUARE_PATTERN.fullmatch(en_passant) is not None and en_passant[1] in "36"


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


def assert_fen_validity(fen: str) -> None:
    """Raise a descriptive error if the FEN should not be sent to the engine."""
    if not is_valid_fen(fen):
        raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen!r}")


def map_pieces(fen: str) -> PieceGrid:
    """Decode the piece placement of a FEN into an 8x8 grid, indexed as grid[rank][file] (rank 0 = first rank).

    Pure function, the engine is not involved.
    ex) standard starting position:
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
    * black pieces are on the 8th rank (the first part of the string), starting with rook on a8
    * ranks 6 through 3 have 8 consecutive empty squares
    * 1st rank are the white pieces (last part of the string)
    """
    assert_fen_validity(fen)
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = fen.split(" ")[0].split("/")

    grid: list[tuple[Piece, ...]] = []
    # FEN string is read from top rank (8th) to bottom rank (1st)
    for rank_fen in reversed(rank_fens):
        rank: list[Piece] = []
        for character in rank_fen:
            if character.isalpha():
                rank.append(Piece.from_fen(character))
            else:
                # A number denotes the amount of empty squares after each other
                rank.extend([EMPTY_SQUARE] * int(character))
        grid.append(tuple(rank[:num_files]))
    return tuple(grid[:num_ranks])


def generate_chess960_fen(rng: random.Random | None = None) -> str:
    """
    Random Chess960 (Fischer random) starting position.
    ---

    * the two bishops stand on squares of opposite color
    * the king stands somewhere in between the two rooks
    * black mirrors white
    """
    rng = rng or random.Random()
    back_rank: list[str] = [""] * BOARD_DIMENSIONS[0]

    light_squares = [file for file in range(8) if file % 2 == 1]
    dark_squares = [file for file in range(8) if file % 2 == 0]
    back_rank[rng.choice(light_squares)] = "b"
    back_rank[rng.choice(dark_squares)] = "b"

    free = [file for file, piece in enumerate(back_rank) if not piece]
    back_rank[free.pop(rng.randrange(len(free)))] = "q"
    for _ in range(2):
        back_rank[free.pop(rng.randrange(len(free)))] = "n"

    # three squares left: rook, king, rook from left to right
    for file, piece in zip(free, "rkr"):
        back_rank[file] = piece

    black = "".join(back_rank)
    return f"{black}/pppppppp/8/8/8/8/PPPPPPPP/{black.upper()} w KQkq - 0 1"
