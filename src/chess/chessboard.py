"""
Common ground of the chessboards: queries, listeners and the re-derivation of the position from the engine.

No chess rules are implemented locally. After every change of the move history, the engine is asked for
* the resulting FEN
* the full set of legal moves
and the piece grid is decoded from that FEN. The three are replaced together, so they never disagree.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from src.chess.fen import STARTING_FEN, map_pieces
from src.chess.moves import Move
from src.chess.pieces import Piece, PieceGrid
from src.chess.position import PositionState
from src.chess.square import Square
from src.core.config import EngineSettings
from src.core.exceptions import ChessError, IllegalMoveError, ObjectDisposedError
from src.engine import protocol
from src.engine.process import EngineProcess

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardSnapshot:
    """Everything derived from the engine after a change. Replaced as a whole, never edited."""

    fen: str
    possible_moves: tuple[Move, ...]
    pieces: PieceGrid


@dataclass(frozen=True)
class ChessboardEvent:
    chessboard: Chessboard
    move: Optional[Move]


class EventKind(Enum):
    MOVE_DONE = "move_done"
    MOVE_UNDONE = "move_undone"
    MOVE_REDONE = "move_redone"
    BOARD_RESET = "board_reset"


class ChessboardListener:
    """
    Observer of a chessboard. Override the notifications you care about.

    Notifications are delivered synchronously, on the thread that changed the board, once the board is already in
    its new state, and in the order the listeners were added.
    """

    def move_done(self, event: ChessboardEvent) -> None:
        pass

    def move_undone(self, event: ChessboardEvent) -> None:
        pass

    def move_redone(self, event: ChessboardEvent) -> None:
        pass

    def board_reset(self, event: ChessboardEvent) -> None:
        pass


EngineSource = EngineProcess | EngineSettings


class Chessboard(ABC):
    """
    Chessboard backed by an external engine.
    ----

    Pass EngineSettings to let the chessboard launch (and later dispose) its own engine, or a running EngineProcess
    to share one. A shared process is left running on dispose.

    Not safe for concurrent mutation: the caller has to serialize reset/perform_move/undo/redo on one instance.
    """

    def __init__(self, engine: EngineSource, legal_moves_depth: Optional[int] = None) -> None:
        if isinstance(engine, EngineSettings):
            self._process = protocol.launch_engine(engine)
            self._owns_process = True
            self._legal_moves_depth = legal_moves_depth or engine.legal_moves_depth
        else:
            self._process = engine
            self._owns_process = False
            self._legal_moves_depth = legal_moves_depth or 1

        self._listeners: list[ChessboardListener] = []
        self._starting_fen = STARTING_FEN
        self._snapshot: Optional[BoardSnapshot] = None
        self._disposed = False

    def _initialize(self, setup: Callable[[], None]) -> None:
        """Run the first reset. An engine launched for this board must not outlive a failed construction."""
        try:
            setup()
        except ChessError:
            self.dispose()
            raise

    # --- MUTATIONS ---
    @abstractmethod
    def reset(self, fen: str = STARTING_FEN) -> None: ...

    @abstractmethod
    def perform_move(self, move: Move | str) -> None: ...

    @abstractmethod
    def undo(self) -> None: ...

    @abstractmethod
    def redo(self) -> None: ...

    # --- HISTORY QUERIES ---
    @abstractmethod
    def done_moves(self) -> list[Move]: ...

    def done_moves_count(self) -> int:
        return len(self.done_moves())

    # --- POSITION QUERIES ---
    def starting_fen(self) -> str:
        self._require_not_disposed()
        return self._starting_fen

    def current_fen(self) -> str:
        return self._current().fen

    def possible_moves(self) -> list[Move]:
        """Legal moves in the current position, in ascending move order"""
        return list(self._current().possible_moves)

    def possible_moves_for(self, square: Square | str) -> list[Move]:
        """Legal moves of the piece standing on the given square"""
        from_square = _to_square(square)
        return [move for move in self._current().possible_moves if move.from_square == from_square]

    def pieces(self) -> PieceGrid:
        """8x8 grid indexed as grid[rank][file]"""
        return self._current().pieces

    def piece_at(self, square: Square | str) -> Piece:
        target = _to_square(square)
        return self._current().pieces[target.rank][target.file]

    def state(self) -> PositionState:
        """Side to move, castling rights, etc. as written in the current FEN"""
        return PositionState.from_fen(self.current_fen())

    # --- LISTENERS ---
    def add_listener(self, listener: ChessboardListener) -> None:
        self._require_not_disposed()
        self._listeners.append(listener)

    def remove_listener(self, listener: ChessboardListener) -> bool:
        self._require_not_disposed()
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    def listeners(self) -> list[ChessboardListener]:
        self._require_not_disposed()
        return list(self._listeners)

    # --- DISPOSAL ---
    def dispose(self) -> None:
        """Release the derived state and stop an engine this board launched. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        self._snapshot = None
        self._listeners.clear()
        self._clear_history()
        if self._owns_process:
            self._process.close()
        _log.debug("Chessboard %s disposed", type(self).__name__)

    def close(self) -> None:
        self.dispose()

    @property
    def engine_process(self) -> EngineProcess:
        """The engine behind this board (launched by it, or shared)"""
        return self._process

    @property
    def owns_engine(self) -> bool:
        return self._owns_process

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def __enter__(self) -> Chessboard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # --- HELPERS FOR THE SUBCLASSES ---
    @abstractmethod
    def _clear_history(self) -> None: ...

    def _derive(self, starting_fen: str, moves: Sequence[Move]) -> BoardSnapshot:
        """
        Re-derivation procedure
        ----

        1. push the starting FEN + the move history to the engine
        2. pull the resulting FEN
        3. decode the piece grid locally
        4. pull the legal moves (perft at shallow depth, counts are dropped)

        Held as one critical section, in case the engine process is shared with another board.
        """
        with self._process.exclusive():
            protocol.set_position(self._process, starting_fen, moves)
            fen = protocol.get_position(self._process)
            legal_moves = protocol.get_legal_moves(self._process, self._legal_moves_depth)
        pieces = map_pieces(fen)
        return BoardSnapshot(fen, tuple(legal_moves), pieces)

    def _commit(self, snapshot: BoardSnapshot) -> None:
        self._snapshot = snapshot
        _log.debug("%s now at %s", type(self).__name__, snapshot.fen)

    def _notify(self, kind: EventKind, move: Optional[Move]) -> None:
        event = ChessboardEvent(self, move)
        for listener in list(self._listeners):
            getattr(listener, kind.value)(event)

    def _checked_move(self, move: Move | str) -> Move:
        """Parse the move if needed and make sure it can be played right now."""
        self._require_not_disposed()
        candidate = move if isinstance(move, Move) else Move.from_uci(move)
        if candidate not in self._current().possible_moves:
            raise IllegalMoveError(f"Move not allowed in {self.current_fen()}: {candidate}")
        return candidate

    def _current(self) -> BoardSnapshot:
        self._require_not_disposed()
        assert self._snapshot is not None
        return self._snapshot

    def _require_not_disposed(self) -> None:
        if self._disposed:
            raise ObjectDisposedError(f"{type(self).__name__} has been disposed")


def _to_square(square: Square | str) -> Square:
    return square if isinstance(square, Square) else Square.from_algebraic(square)
