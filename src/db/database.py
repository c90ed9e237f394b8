"""Generate database sessions"""

from typing import Generator

from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import StorageSettings
from src.db.schema import Base

IN_MEMORY_PREFIX = "sqlite:///:memory:"


def create_session_factory(settings: StorageSettings) -> sessionmaker[Session]:
    """Engine + session factory for the configured database. Tables are created if missing."""
    if settings.database_url.startswith(IN_MEMORY_PREFIX):
        # every connection would otherwise get its own, empty, in-memory database
        engine = create_engine(
            settings.database_url,
            echo=settings.echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(settings.database_url, echo=settings.echo)

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
