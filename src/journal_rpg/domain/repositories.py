from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest


# Unit of work executed inside an atomic persist; receives the active session
# (a SQLAlchemy session, or a stand-in for in-memory stores).
PersistOperation = Callable[[object], None]


class CharacterRepository(ABC):
    @abstractmethod
    def get(self, user_id: int) -> Optional[Character]:
        raise NotImplementedError

    @abstractmethod
    def save(self, character: Character) -> None:
        raise NotImplementedError


class QuestRepository(ABC):
    @abstractmethod
    def get(self, quest_id: int) -> Optional[Quest]:
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[Quest]:
        raise NotImplementedError

    @abstractmethod
    def build_add_quests_operation(self, user_id: int, quests: List[Quest], stored: List[Quest]) -> PersistOperation:
        """Return an operation that inserts ``quests`` and appends the stored copies (with ids) to ``stored``."""
        raise NotImplementedError

    @abstractmethod
    def build_save_quest_operation(self, quest: Quest) -> PersistOperation:
        raise NotImplementedError

    def list_active_for_user(self, user_id: int) -> List[Quest]:
        return [quest for quest in self.list_for_user(user_id) if not quest.is_completed]


class JournalRepository(ABC):
    @abstractmethod
    def list_for_user(self, user_id: int) -> List[JournalEntry]:
        raise NotImplementedError

    @abstractmethod
    def build_add_entry_operation(self, entry: JournalEntry, stored: List[JournalEntry]) -> PersistOperation:
        raise NotImplementedError
