"""Orchestration between the chessboards and the persistence layer (and the JSON save-game format)."""

import logging
from typing import Optional
from uuid import UUID

from pydantic import ValidationError as PayloadError

from src.api.models import SavedGamePayload
from src.chess.analysis import AnalysisChessboard
from src.chess.chessboard import EngineSource
from src.chess.gameplay import GamePlayChessboard
from src.core.exceptions import RepositoryError, ValidationError
from src.core.models import SavedGame
from src.db.repository import GameRepository

_log = logging.getLogger(__name__)


class GameService:
    """Save, restore and exchange games."""

    def __init__(self, repository: GameRepository) -> None:
        self.repo = repository

    # --- SAVING ---
    def save_game(self, board: GamePlayChessboard) -> UUID:
        """Store a new record for the board's current history."""
        _, game_id = self.repo.create_game(board.to_saved_game())
        _log.info("Saved game %s (%d moves)", game_id, len(board.all_moves()))
        return game_id

    def update_game(self, game_id: UUID, board: GamePlayChessboard) -> SavedGame:
        """Overwrite an existing record with the board's current history."""
        stored = self.repo.update_game(game_id, board.to_saved_game())
        if stored is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        _log.info("Updated game %s", game_id)
        return stored

    def delete_game(self, game_id: UUID) -> None:
        if self.repo.delete_game(game_id) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")

    def list_games(self) -> list[UUID]:
        return self.repo.list_game_ids()

    # --- RESTORING ---
    def load_game(
        self, game_id: UUID, engine: EngineSource, legal_moves_depth: Optional[int] = None
    ) -> GamePlayChessboard:
        """Rebuild a gameplay chessboard from a stored record."""
        saved = self._fetch_game(game_id)
        _log.info("Loading game %s", game_id)
        return GamePlayChessboard.from_saved_game(saved, engine, legal_moves_depth)

    def open_analysis(
        self, game_id: UUID, engine: EngineSource, legal_moves_depth: Optional[int] = None
    ) -> AnalysisChessboard:
        """Analysis board whose mainline is the done part of a stored game."""
        board = self.load_game(game_id, engine, legal_moves_depth)
        try:
            return AnalysisChessboard.from_gameplay(board, engine, legal_moves_depth)
        finally:
            board.dispose()

    # --- JSON EXCHANGE ---
    def export_game(self, game_id: UUID) -> str:
        saved = self._fetch_game(game_id)
        return SavedGamePayload.from_saved_game(saved).model_dump_json()

    def import_game(self, payload_json: str) -> UUID:
        """Validate a JSON save-game and store it as a new record."""
        try:
            payload = SavedGamePayload.model_validate_json(payload_json)
        except PayloadError as exc:
            raise ValidationError(f"Invalid saved game: {exc}") from exc

        _, game_id = self.repo.create_game(payload.to_saved_game())
        _log.info("Imported game %s: %s", game_id, " ".join(payload.moves_uci()) or "<no moves>")
        return game_id

    # -- Internal helpers --
    def _fetch_game(self, game_id: UUID) -> SavedGame:
        """Attempt to find the game in the repository and raise error if it fails."""
        saved = self.repo.get_game(game_id)
        if saved is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return saved
