"""Implementation of (Game)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import SavedGame
from src.db.schema import DBSavedGame


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> SavedGame | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: SavedGame) -> tuple[SavedGame, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        new_id = uuid4()
        game_db = DBSavedGame(
            id=new_id,
            starting_fen=game.starting_fen,
            moves=list(game.moves),
            done_moves_count=game.done_moves_count,
        )
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: SavedGame) -> SavedGame | None:
        """Overwrite an existing record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_db.starting_fen = game.starting_fen
        game_db.moves = list(game.moves)
        game_db.done_moves_count = game.done_moves_count
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> SavedGame | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return game_model

    def list_game_ids(self) -> list[UUID]:
        query = select(DBSavedGame.id).order_by(DBSavedGame.created_at)
        return list(self.db.scalars(query))

    def _fetch_game(self, game_id: UUID) -> DBSavedGame | None:
        query = select(DBSavedGame).where(DBSavedGame.id == game_id)
        return self.db.scalar(query)

    def _to_model(self, game_db: DBSavedGame) -> SavedGame:
        """Convert SQLAlchemy model to data transfer model."""
        return SavedGame(
            starting_fen=game_db.starting_fen,
            moves=list(game_db.moves),
            done_moves_count=game_db.done_moves_count,
        )
