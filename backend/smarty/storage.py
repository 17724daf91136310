"""
Wiring of repositories for the running application.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from sqlalchemy.ext.asyncio import AsyncEngine

from smarty.database import create_engine, create_session_factory, create_tables, dispose
from smarty.models import CategoryRow, NoteRow
from smarty.repositories import InMemoryRepository, Repository, SqlRepository
from smarty.schemas.category import Category
from smarty.schemas.note import Note

logger = logging.getLogger(__name__)


@dataclass
class Storage:
    notes: Repository[Note]
    categories: Repository[Category]
    engine: Optional[AsyncEngine] = None
    # Owners that already received the default categories
    seeded_owners: Set[str] = field(default_factory=set)

    async def close(self) -> None:
        await dispose(self.engine)


def memory_storage() -> Storage:
    return Storage(notes=InMemoryRepository(), categories=InMemoryRepository())


async def open_storage(database_url: str = "", echo: bool = False) -> Storage:
    """In-memory storage unless a database URL is configured."""
    if not database_url:
        logger.info("No DATABASE_URL configured, notes are kept in memory")
        return memory_storage()

    engine = create_engine(database_url, echo=echo)
    await create_tables(engine)
    session_factory = create_session_factory(engine)
    logger.info("Using SQL storage at %s", engine.url.render_as_string(hide_password=True))
    return Storage(
        notes=SqlRepository(session_factory, NoteRow, Note),
        categories=SqlRepository(session_factory, CategoryRow, Category),
        engine=engine,
    )
