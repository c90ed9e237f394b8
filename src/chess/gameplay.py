"""Chessboard for playing a game: one linear move history that can be rewound and replayed."""

from __future__ import annotations

import logging
from typing import Optional

from src.chess.chessboard import Chessboard, EngineSource, EventKind
from src.chess.fen import STARTING_FEN, assert_fen_validity
from src.chess.moves import Move
from src.core.exceptions import IllegalMoveError, ValidationError
from src.core.models import SavedGame
from src.engine import protocol

_log = logging.getLogger(__name__)


class GamePlayChessboard(Chessboard):
    """
    Linear history
    ----

    Every move ever played is kept in `all_moves()`, and a cursor tells how many of them are done.
    Undo/redo only move the cursor. Playing a move while the cursor is not at the end throws away
    everything after the cursor first.
    """

    def __init__(
        self,
        engine: EngineSource,
        fen: str = STARTING_FEN,
        legal_moves_depth: Optional[int] = None,
    ) -> None:
        super().__init__(engine, legal_moves_depth)
        self._moves: list[Move] = []
        self._moves_done = 0
        self._initialize(lambda: self.reset(fen))

    @classmethod
    def from_saved_game(
        cls, saved: SavedGame, engine: EngineSource, legal_moves_depth: Optional[int] = None
    ) -> GamePlayChessboard:
        """Restore a chessboard from its save-game representation."""
        assert_fen_validity(saved.starting_fen)
        moves = [Move.from_hash_code(code) for code in saved.moves]
        if not 0 <= saved.done_moves_count <= len(moves):
            raise ValidationError(
                f"Saved game has {len(moves)} moves, cannot have {saved.done_moves_count} of them done"
            )

        board = cls(engine, saved.starting_fen, legal_moves_depth)
        board._initialize(lambda: board._restore(moves, saved.done_moves_count))
        return board

    def to_saved_game(self) -> SavedGame:
        self._require_not_disposed()
        return SavedGame(
            starting_fen=self._starting_fen,
            moves=[move.hash_code() for move in self._moves],
            done_moves_count=self._moves_done,
        )

    # --- MUTATIONS ---
    def reset(self, fen: str = STARTING_FEN) -> None:
        """Start a new game from the given position"""
        self._require_not_disposed()
        assert_fen_validity(fen)

        protocol.start_new_game(self._process)
        snapshot = self._derive(fen, [])

        self._starting_fen = fen
        self._moves = []
        self._moves_done = 0
        self._commit(snapshot)
        self._notify(EventKind.BOARD_RESET, None)

    def perform_move(self, move: Move | str) -> None:
        new_move = self._checked_move(move)
        moves = self._moves[: self._moves_done] + [new_move]
        snapshot = self._derive(self._starting_fen, moves)

        # moves past the cursor are dropped once a different line is played
        self._moves = moves
        self._moves_done = len(moves)
        self._commit(snapshot)
        self._notify(EventKind.MOVE_DONE, new_move)

    def undo(self) -> None:
        self._require_not_disposed()
        if self._moves_done == 0:
            return
        self._move_cursor(self._moves_done - 1)
        self._notify(EventKind.MOVE_UNDONE, self._moves[self._moves_done])

    def redo(self) -> None:
        self._require_not_disposed()
        if self._moves_done == len(self._moves):
            return
        self._move_cursor(self._moves_done + 1)
        self._notify(EventKind.MOVE_REDONE, self._moves[self._moves_done - 1])

    def set_done_moves_count(self, count: int) -> None:
        """Jump to any point of the recorded history, with a single engine round trip."""
        self._require_not_disposed()
        if not 0 <= count <= len(self._moves):
            raise ValidationError(
                f"Invalid number of moves to be done: {count} (recorded: {len(self._moves)})"
            )
        self._move_cursor(count)

    # --- QUERIES ---
    def done_moves(self) -> list[Move]:
        self._require_not_disposed()
        return self._moves[: self._moves_done]

    def done_moves_count(self) -> int:
        self._require_not_disposed()
        return self._moves_done

    def all_moves(self) -> list[Move]:
        """Including the moves that were undone, but not yet overwritten"""
        self._require_not_disposed()
        return list(self._moves)

    # --- HELPERS ---
    def _move_cursor(self, count: int) -> None:
        snapshot = self._derive(self._starting_fen, self._moves[:count])
        self._moves_done = count
        self._commit(snapshot)

    def _restore(self, moves: list[Move], done_count: int) -> None:
        """Replay the saved moves one by one, each one has to be legal after the ones before it."""
        current = self._current()
        snapshot = current
        for index, move in enumerate(moves):
            if move not in current.possible_moves:
                raise IllegalMoveError(f"Saved move #{index + 1} ({move}) is not allowed in {current.fen}")
            current = self._derive(self._starting_fen, moves[: index + 1])
            if index + 1 == done_count:
                snapshot = current

        self._moves = list(moves)
        self._moves_done = done_count
        self._commit(snapshot)
        _log.debug("Restored game with %d moves, %d done", len(moves), done_count)

    def _clear_history(self) -> None:
        self._moves = []
        self._moves_done = 0
