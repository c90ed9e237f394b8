"""
Boundary layer data model(s).

These objects are passed between the chessboards, the Service and the persistence layer.
(Decouples the data model specific to the DB layer or API layer from the information a chessboard needs to be restored.)
"""

from dataclasses import dataclass, field


@dataclass
class SavedGame:
    """Minimal save-game representation of a gameplay chessboard.

    * starting_fen: the position the game started from
    * moves: every recorded move as its 16-bit move hash (including moves that were undone)
    * done_moves_count: how many of those moves are currently played on the board
    """

    starting_fen: str
    moves: list[int] = field(default_factory=list)
    done_moves_count: int = 0
