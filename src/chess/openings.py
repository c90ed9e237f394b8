"""
Named openings, and finding out which one a game is in.

An opening is a sequence of moves from the standard starting position, optionally with its code in the
Encyclopaedia of Chess Openings (ECO). The database is filled from tab separated lines:

    C50<TAB>Italian Game<TAB>e2e4 e7e5 g1f3 b8c6 f1c4
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

from src.chess.chessboard import Chessboard, EngineSource
from src.chess.fen import STARTING_FEN
from src.chess.gameplay import GamePlayChessboard
from src.chess.moves import Move
from src.core.exceptions import ChessError, ValidationError

_log = logging.getLogger(__name__)

ECO_CODE_PATTERN = re.compile(r"[A-E][0-9]{2}")
TSV_SEPARATOR = "\t"
TSV_COLUMNS = 3


@dataclass(frozen=True)
class Opening:
    eco_code: Optional[str]
    name: str
    moves: tuple[Move, ...]

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError("Opening name cannot be empty")
        if self.eco_code is not None and not ECO_CODE_PATTERN.fullmatch(self.eco_code):
            raise ValidationError(f"Invalid ECO code: {self.eco_code!r}")

    @classmethod
    def from_uci(cls, eco_code: Optional[str], name: str, moves: str) -> Opening:
        """Moves given in UCI notation, separated by spaces. An empty ECO code means the opening has none."""
        return cls(eco_code or None, name, tuple(Move.from_uci(move) for move in moves.split()))

    def sort_key(self) -> tuple[str, tuple[Move, ...]]:
        """By ECO code first (openings without one go first), then by moves"""
        return self.eco_code or "", self.moves

    def is_played_in(self, moves: Sequence[Move]) -> bool:
        """True when the given game starts with the moves of this opening"""
        return tuple(moves[: len(self.moves)]) == self.moves

    def as_chessboard(self, engine: EngineSource) -> GamePlayChessboard:
        """Gameplay chessboard with the moves of the opening already played."""
        board = GamePlayChessboard(engine)
        try:
            for move in self.moves:
                board.perform_move(move)
        except ChessError:
            board.dispose()
            raise
        return board

    def __str__(self) -> str:
        return f"[{self.eco_code}] {self.name}" if self.eco_code else self.name


class OpeningDatabase:
    """Collection of openings, iterated in sort order. The same code and moves are stored only once."""

    def __init__(self, openings: Iterable[Opening] = ()) -> None:
        self._openings: dict[tuple[str, tuple[Move, ...]], Opening] = {}
        for opening in openings:
            self.add(opening)

    @classmethod
    def from_tsv_file(cls, path: str | Path) -> OpeningDatabase:
        database = cls()
        with open(path, encoding="utf-8") as file:
            database.load_tsv(file)
        return database

    def add(self, opening: Opening) -> bool:
        """False when an opening with the same code and moves is already there"""
        key = opening.sort_key()
        if key in self._openings:
            return False
        self._openings[key] = opening
        return True

    def load_tsv(self, lines: Iterable[str]) -> int:
        """
        Add the openings of a tab separated file (ECO code, name, UCI moves). Blank lines are skipped.
        Returns how many openings were added. A corrupted line raises a ValidationError naming its number.
        """
        added = 0
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            columns = line.rstrip("\r\n").split(TSV_SEPARATOR)
            if len(columns) != TSV_COLUMNS:
                raise ValidationError(f"Opening data on line {line_number} are corrupted: {line!r}")
            try:
                opening = Opening.from_uci(*columns)
            except ValidationError as exc:
                raise ValidationError(f"Opening data on line {line_number} are corrupted: {exc}") from exc
            if self.add(opening):
                _log.debug("Loaded opening %s", opening)
                added += 1
        _log.info("Loaded %d openings", added)
        return added

    def filtered(self, predicate: Callable[[Opening], bool]) -> list[Opening]:
        return [opening for opening in self if predicate(opening)]

    def find(self, moves: Sequence[Move]) -> Optional[Opening]:
        """The longest opening the game (played from the standard starting position) is in"""
        candidates = self.filtered(lambda opening: opening.is_played_in(moves))
        if not candidates:
            return None
        return max(candidates, key=lambda opening: len(opening.moves))

    def identify(self, board: Chessboard) -> Optional[Opening]:
        """Opening of the moves done on the board. None for games that did not start from the standard position."""
        if board.starting_fen() != STARTING_FEN:
            return None
        return self.find(board.done_moves())

    def __iter__(self) -> Iterator[Opening]:
        return iter(sorted(self._openings.values(), key=Opening.sort_key))

    def __len__(self) -> int:
        return len(self._openings)
