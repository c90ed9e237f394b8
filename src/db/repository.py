"""Protocol repository (SQLAlchemy implementation in sql_repository.py, anything else can be plugged in)"""

from typing import Protocol
from uuid import UUID

from src.core.models import SavedGame


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: UUID) -> SavedGame | None:
        """Get game by ID, if record exists."""
        ...

    def create_game(self, game: SavedGame) -> tuple[SavedGame, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: SavedGame) -> SavedGame | None:
        """Overwrite an existing record."""
        ...

    def delete_game(self, game_id: UUID) -> SavedGame | None:
        """Remove a game's record."""
        ...

    def list_game_ids(self) -> list[UUID]:
        """IDs of every stored game, oldest first."""
        ...
