from __future__ import annotations

from collections.abc import Callable, Sequence

from sqlalchemy.orm import sessionmaker

from journal_rpg.domain.models.character import Character
from journal_rpg.infrastructure.db.sql.repos import SqlCharacterRepository


def create_sql_atomic_persistor(session_factory: sessionmaker) -> Callable[..., None]:
    character_writer = SqlCharacterRepository(session_factory)

    def _persist(
        character: Character,
        operations: Sequence[Callable[[object], None]] | None = None,
    ) -> None:
        """Persist the character and every queued operation in one DB transaction."""
        with session_factory.begin() as session:
            character_writer.upsert(session, character)
            for operation in operations or ():
                operation(session)

    return _persist
