import sys
from datetime import datetime, timezone
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest
from journal_rpg.infrastructure.inmemory.atomic_persistence import create_inmemory_atomic_persistor
from journal_rpg.infrastructure.inmemory.repos import (
    InMemoryCharacterRepository,
    InMemoryJournalRepository,
    InMemoryQuestRepository,
)


NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


class InMemoryAtomicPersistenceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.characters = InMemoryCharacterRepository()
        self.quests = InMemoryQuestRepository()
        self.journals = InMemoryJournalRepository()
        self.persist = create_inmemory_atomic_persistor(self.characters, self.quests, self.journals)

    def test_operations_run_and_assign_ids(self) -> None:
        stored_quests: list[Quest] = []
        stored_entries: list[JournalEntry] = []
        self.persist(
            Character(user_id=1, xp=10),
            [
                self.journals.build_add_entry_operation(JournalEntry(user_id=1, content="hi", created_at=NOW), stored_entries),
                self.quests.build_add_quests_operation(1, [Quest(title="A"), Quest(title="B")], stored_quests),
            ],
        )

        self.assertEqual(10, self.characters.get(1).xp)
        self.assertEqual([1, 2], [quest.id for quest in stored_quests])
        self.assertEqual([1], [entry.id for entry in stored_entries])
        self.assertEqual(["A", "B"], [quest.title for quest in self.quests.list_for_user(1)])

    def test_failure_restores_every_repository(self) -> None:
        self.persist(Character(user_id=1, xp=10), [])
        first: list[Quest] = []
        self.persist(Character(user_id=1, xp=10), [self.quests.build_add_quests_operation(1, [Quest(title="A")], first)])

        def _explode(_session) -> None:
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.persist(
                Character(user_id=1, xp=999),
                [
                    self.journals.build_add_entry_operation(JournalEntry(user_id=1, content="x", created_at=NOW), []),
                    self.quests.build_add_quests_operation(1, [Quest(title="B")], []),
                    _explode,
                ],
            )

        self.assertEqual(10, self.characters.get(1).xp)
        self.assertEqual(["A"], [quest.title for quest in self.quests.list_for_user(1)])
        self.assertEqual([], self.journals.list_for_user(1))

        later: list[Quest] = []
        self.persist(Character(user_id=1), [self.quests.build_add_quests_operation(1, [Quest(title="C")], later)])
        self.assertEqual(2, later[0].id)

    def test_repositories_hand_out_copies(self) -> None:
        self.characters.save(Character(user_id=1))
        loaded = self.characters.get(1)
        loaded.xp = 500
        self.assertEqual(0, self.characters.get(1).xp)

    def test_saving_quest_without_id_fails(self) -> None:
        with self.assertRaises(ValueError):
            self.persist(Character(user_id=1), [self.quests.build_save_quest_operation(Quest(title="Loose"))])


if __name__ == "__main__":
    unittest.main()
