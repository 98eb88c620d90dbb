from __future__ import annotations

import copy
from dataclasses import replace
from typing import Dict, List, Optional

from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest
from journal_rpg.domain.repositories import (
    CharacterRepository,
    JournalRepository,
    PersistOperation,
    QuestRepository,
)


class InMemoryCharacterRepository(CharacterRepository):
    def __init__(self) -> None:
        self._characters: Dict[int, Character] = {}

    def get(self, user_id: int) -> Optional[Character]:
        character = self._characters.get(int(user_id))
        return copy.deepcopy(character) if character is not None else None

    def save(self, character: Character) -> None:
        self._characters[int(character.user_id)] = copy.deepcopy(character)


class InMemoryQuestRepository(QuestRepository):
    def __init__(self) -> None:
        self._quests: Dict[int, Quest] = {}
        self._next_id = 1

    def get(self, quest_id: int) -> Optional[Quest]:
        quest = self._quests.get(int(quest_id))
        return copy.deepcopy(quest) if quest is not None else None

    def list_for_user(self, user_id: int) -> List[Quest]:
        return [copy.deepcopy(quest) for quest in self._quests.values() if quest.user_id == int(user_id)]

    def build_add_quests_operation(self, user_id: int, quests: List[Quest], stored: List[Quest]) -> PersistOperation:
        def _operation(session) -> None:
            _ = session
            for quest in quests:
                saved = replace(quest, id=self._next_id, user_id=int(user_id))
                self._next_id += 1
                self._quests[saved.id] = copy.deepcopy(saved)
                stored.append(saved)

        return _operation

    def build_save_quest_operation(self, quest: Quest) -> PersistOperation:
        def _operation(session) -> None:
            _ = session
            if quest.id is None:
                raise ValueError("Cannot save a quest without an id")
            self._quests[int(quest.id)] = copy.deepcopy(quest)

        return _operation


class InMemoryJournalRepository(JournalRepository):
    def __init__(self) -> None:
        self._entries: List[JournalEntry] = []
        self._next_id = 1

    def list_for_user(self, user_id: int) -> List[JournalEntry]:
        rows = [entry for entry in self._entries if entry.user_id == int(user_id)]
        return sorted(rows, key=lambda entry: (entry.created_at, entry.id or 0), reverse=True)

    def build_add_entry_operation(self, entry: JournalEntry, stored: List[JournalEntry]) -> PersistOperation:
        def _operation(session) -> None:
            _ = session
            saved = replace(entry, id=self._next_id)
            self._next_id += 1
            self._entries.append(saved)
            stored.append(saved)

        return _operation
