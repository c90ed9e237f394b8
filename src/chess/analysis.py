"""
Chessboard for analysing: every explored line is kept in a tree of variations.

The tree is an arena: nodes live in a list and refer to each other by index, so a parent is a lookup, never an owner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.chess.chessboard import Chessboard, EngineSource, EventKind
from src.chess.fen import STARTING_FEN, assert_fen_validity
from src.chess.gameplay import GamePlayChessboard
from src.chess.moves import Move
from src.core.exceptions import ValidationError

_log = logging.getLogger(__name__)

ROOT_ID = 0
MAINLINE = 0


@dataclass
class MoveNode:
    move: Optional[Move]  # None only for the root
    parent_id: Optional[int]
    children: list[int] = field(default_factory=list)


class MoveTree:
    """
    Rooted, ordered tree of moves. The children of a node are the variations explored from that position,
    in the order they were first played: child 0 is the mainline.

    A position in the tree is addressed by a path of child indices starting at the root.
    """

    def __init__(self) -> None:
        self._nodes: list[MoveNode] = [MoveNode(None, None)]

    def clear(self) -> None:
        self._nodes = [MoveNode(None, None)]

    @property
    def root(self) -> int:
        return ROOT_ID

    def __len__(self) -> int:
        """number of moves in the tree"""
        return len(self._nodes) - 1

    def move(self, node_id: int) -> Move:
        move = self._nodes[node_id].move
        if move is None:
            raise ValidationError("The root of the move tree holds no move")
        return move

    def parent(self, node_id: int) -> Optional[int]:
        return self._nodes[node_id].parent_id

    def children(self, node_id: int) -> list[int]:
        return list(self._nodes[node_id].children)

    def child_moves(self, node_id: int) -> list[Move]:
        return [self.move(child_id) for child_id in self._nodes[node_id].children]

    def find_child(self, node_id: int, move: Move) -> Optional[int]:
        """index of the variation starting with this move, if it was explored already"""
        for index, child_id in enumerate(self._nodes[node_id].children):
            if self._nodes[child_id].move == move:
                return index
        return None

    def add_child(self, node_id: int, move: Move) -> int:
        """Append a new variation, returns its index among the siblings"""
        self._nodes.append(MoveNode(move, node_id))
        siblings = self._nodes[node_id].children
        siblings.append(len(self._nodes) - 1)
        return len(siblings) - 1

    def node_at(self, path: list[int]) -> int:
        node_id = ROOT_ID
        for index in path:
            node_id = self._nodes[node_id].children[index]
        return node_id

    def moves_along(self, path: list[int]) -> list[Move]:
        moves: list[Move] = []
        node_id = ROOT_ID
        for index in path:
            node_id = self._nodes[node_id].children[index]
            moves.append(self.move(node_id))
        return moves


class AnalysisChessboard(Chessboard):
    """
    Branching history
    ----

    * playing a move that was already explored from the current position walks into that variation
    * playing a new move adds a variation (it becomes the mainline only if it is the first one)
    * undo steps back to the parent position, keeping every variation
    * redo walks into the mainline, unless another variation is asked for explicitly
    """

    def __init__(
        self,
        engine: EngineSource,
        fen: str = STARTING_FEN,
        legal_moves_depth: Optional[int] = None,
    ) -> None:
        super().__init__(engine, legal_moves_depth)
        self._tree = MoveTree()
        self._path: list[int] = []
        self._initialize(lambda: self.reset(fen))

    @classmethod
    def from_gameplay(
        cls,
        board: GamePlayChessboard,
        engine: EngineSource,
        legal_moves_depth: Optional[int] = None,
    ) -> AnalysisChessboard:
        """Analyse a game: the done moves of the gameplay board become the mainline."""
        analysis = cls(engine, board.starting_fen(), legal_moves_depth)

        def replay() -> None:
            for move in board.done_moves():
                analysis.perform_move(move)

        analysis._initialize(replay)
        return analysis

    # --- MUTATIONS ---
    def reset(self, fen: str = STARTING_FEN) -> None:
        self._require_not_disposed()
        assert_fen_validity(fen)
        snapshot = self._derive(fen, [])

        self._starting_fen = fen
        self._tree.clear()
        self._path = []
        self._commit(snapshot)
        self._notify(EventKind.BOARD_RESET, None)

    def perform_move(self, move: Move | str) -> None:
        new_move = self._checked_move(move)
        node_id = self._tree.node_at(self._path)
        existing_index = self._tree.find_child(node_id, new_move)
        snapshot = self._derive(self._starting_fen, self.done_moves() + [new_move])

        if existing_index is None:
            index = self._tree.add_child(node_id, new_move)
            _log.debug("New variation %s at depth %d", new_move, len(self._path))
        else:
            index = existing_index
        self._path.append(index)
        self._commit(snapshot)
        self._notify(EventKind.MOVE_DONE, new_move)

    def undo(self) -> None:
        self._require_not_disposed()
        if not self._path:
            return
        moves = self.done_moves()
        snapshot = self._derive(self._starting_fen, moves[:-1])

        self._path.pop()
        self._commit(snapshot)
        self._notify(EventKind.MOVE_UNDONE, moves[-1])

    def redo(self, variation: int = MAINLINE) -> None:
        """Walk into one of the explored continuations. Does nothing if there is none."""
        self._require_not_disposed()
        continuations = self._tree.child_moves(self._tree.node_at(self._path))
        if not continuations:
            return
        if not 0 <= variation < len(continuations):
            raise ValidationError(
                f"No variation {variation} here, only {len(continuations)} explored"
            )

        move = continuations[variation]
        snapshot = self._derive(self._starting_fen, self.done_moves() + [move])
        self._path.append(variation)
        self._commit(snapshot)
        self._notify(EventKind.MOVE_REDONE, move)

    # --- QUERIES ---
    def done_moves(self) -> list[Move]:
        self._require_not_disposed()
        return self._tree.moves_along(self._path)

    def done_moves_count(self) -> int:
        self._require_not_disposed()
        return len(self._path)

    @property
    def tree(self) -> MoveTree:
        """The explored variations. Change them only through the chessboard."""
        self._require_not_disposed()
        return self._tree

    def current_path(self) -> list[int]:
        self._require_not_disposed()
        return list(self._path)

    def current_node(self) -> int:
        self._require_not_disposed()
        return self._tree.node_at(self._path)

    def variations(self) -> list[Move]:
        """Moves `redo()` can walk into from here, mainline first"""
        self._require_not_disposed()
        return self._tree.child_moves(self._tree.node_at(self._path))

    def _clear_history(self) -> None:
        self._tree.clear()
        self._path = []
