"""Save-game representation exchanged with the outside world (JSON import/export)"""

from typing import Self

from pydantic import BaseModel, field_validator, model_validator

from src.chess.fen import is_valid_fen
from src.chess.moves import Move
from src.core.exceptions import InvalidMoveHashError
from src.core.models import SavedGame

INT16_MIN = -(2**15)
INT16_MAX = 2**15 - 1


class SavedGamePayload(BaseModel):
    starting_fen: str
    moves: list[int]
    done_moves_count: int

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: str) -> str:
        if not is_valid_fen(value):
            raise ValueError(f"Cannot interpret {value!r} as a valid FEN string.")
        return value

    @field_validator("moves")
    @classmethod
    def validate_moves(cls, value: list[int]) -> list[int]:
        for code in value:
            if not INT16_MIN <= code <= INT16_MAX:
                raise ValueError(f"Move {code} does not fit into a signed 16-bit integer.")
            try:
                Move.from_hash_code(code)
            except InvalidMoveHashError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def validate_done_moves_count(self) -> Self:
        if not 0 <= self.done_moves_count <= len(self.moves):
            raise ValueError(
                f"done_moves_count must lie between 0 and {len(self.moves)}, got {self.done_moves_count}."
            )
        return self

    @classmethod
    def from_saved_game(cls, game: SavedGame) -> Self:
        return cls(
            starting_fen=game.starting_fen,
            moves=list(game.moves),
            done_moves_count=game.done_moves_count,
        )

    def to_saved_game(self) -> SavedGame:
        return SavedGame(
            starting_fen=self.starting_fen,
            moves=list(self.moves),
            done_moves_count=self.done_moves_count,
        )

    def moves_uci(self) -> list[str]:
        """Readable version of the move list"""
        return [Move.from_hash_code(code).to_uci() for code in self.moves]
