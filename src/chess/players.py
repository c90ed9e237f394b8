"""Who plays each side of a game, and the engine playing the computer sides."""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from src.chess.gameplay import GamePlayChessboard
from src.chess.moves import Move
from src.chess.pieces import Color
from src.core.exceptions import IllegalMoveError
from src.engine import protocol

_log = logging.getLogger(__name__)

SKILL_LEVEL_OPTION = "Skill Level"
MIN_SKILL_LEVEL = 0
MAX_SKILL_LEVEL = 20
DEFAULT_SEARCH_DEPTH = 10


class PlayerKind(Enum):
    HUMAN = "human"
    COMPUTER = "computer"


class PlayerConfiguration(BaseModel):
    """Human or computer for each side, and how strong the computer plays (UCI 'Skill Level', 0 to 20)."""

    model_config = ConfigDict(frozen=True)

    white: PlayerKind = PlayerKind.HUMAN
    black: PlayerKind = PlayerKind.HUMAN
    skill_level: int = MAX_SKILL_LEVEL
    search_depth: int = DEFAULT_SEARCH_DEPTH

    @field_validator("skill_level")
    @classmethod
    def validate_skill_level(cls, value: int) -> int:
        if not MIN_SKILL_LEVEL <= value <= MAX_SKILL_LEVEL:
            raise ValueError(f"Skill level must be between {MIN_SKILL_LEVEL} and {MAX_SKILL_LEVEL}, got {value}")
        return value

    @field_validator("search_depth")
    @classmethod
    def validate_depth(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Search depth must be at least 1, got {value}")
        return value

    def player(self, color: Color) -> PlayerKind:
        return self.white if color == Color.WHITE else self.black


class ComputerPlayer:
    """
    Plays the computer sides of a gameplay chessboard, using the engine behind the board.
    ----

    The skill level is applied right before every search, in the same critical section, so boards sharing the engine
    can use different levels.
    """

    def __init__(self, board: GamePlayChessboard, configuration: PlayerConfiguration) -> None:
        self.board = board
        self.configuration = configuration

    def is_to_move(self) -> bool:
        return self.configuration.player(self.board.state().active_color) == PlayerKind.COMPUTER

    def play(self) -> Optional[Move]:
        """Let the engine play one move for the side to move. None when there is nothing to play (mate, stalemate)."""
        color = self.board.state().active_color
        if self.configuration.player(color) != PlayerKind.COMPUTER:
            raise IllegalMoveError(f"It is the turn of a human player ({color.name.lower()})")

        process = self.board.engine_process
        with process.exclusive():
            protocol.set_option(process, SKILL_LEVEL_OPTION, self.configuration.skill_level)
            protocol.set_position(process, self.board.starting_fen(), self.board.done_moves())
            move = protocol.get_best_move(process, self.configuration.search_depth)
            if move is None:
                return None
            self.board.perform_move(move)

        _log.debug("Computer played %s for %s", move, color.name.lower())
        return move

    def respond(self, max_moves: Optional[int] = None) -> list[Move]:
        """Keep playing until a human is to move, the game is over, or `max_moves` were played."""
        played: list[Move] = []
        while self.is_to_move() and (max_moves is None or len(played) < max_moves):
            move = self.play()
            if move is None:
                break
            played.append(move)
        return played
