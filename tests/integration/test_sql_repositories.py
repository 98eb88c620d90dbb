import sys
from datetime import datetime, timezone
from pathlib import Path
import unittest

from hypothesis import given, settings, strategies as st
from sqlalchemy import text

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from journal_rpg.domain.models.analysis import AnalysisResult, CharacterProgression, Mood
from journal_rpg.domain.models.character import Achievement, Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest, QuestStatus
from journal_rpg.domain.models.stats import STAT_NAMES, StatSet
from journal_rpg.infrastructure.db.sql.connection import create_db_engine, create_session_factory
from journal_rpg.infrastructure.db.sql.repos import (
    SqlCharacterRepository,
    SqlJournalRepository,
    SqlQuestRepository,
)
from journal_rpg.infrastructure.db.sql.schema import ensure_schema


NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class SqlRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_db_engine("sqlite://")
        ensure_schema(self.engine)
        self.SessionLocal = create_session_factory(self.engine)
        self.characters = SqlCharacterRepository(self.SessionLocal)
        self.quests = SqlQuestRepository(self.SessionLocal)
        self.journals = SqlJournalRepository(self.SessionLocal)

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_ensure_schema_is_idempotent(self) -> None:
        self.assertEqual(3, ensure_schema(self.engine))
        with self.engine.connect() as conn:
            tables = {row.name for row in conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'"))}
        self.assertTrue({"rpg_character", "quest", "journal_entry"} <= tables)

    def test_character_roundtrip_and_upsert(self) -> None:
        character = Character(
            user_id=3,
            name="Rin",
            class_name="Monk",
            level=2,
            xp=1200,
            stats=StatSet(wisdom=4.25, charisma=2.5),
            achievements=[Achievement(title="New Insight", description="Breathe", timestamp=NOW)],
        )
        self.characters.save(character)
        character.xp = 1300
        self.characters.save(character)

        loaded = self.characters.get(3)
        self.assertEqual(("Rin", "Monk", 2, 1300), (loaded.name, loaded.class_name, loaded.level, loaded.xp))
        self.assertEqual(character.stats, loaded.stats)
        self.assertEqual(character.achievements, loaded.achievements)
        self.assertIsNone(self.characters.get(4))

    def test_quest_insert_list_and_save(self) -> None:
        stored: list[Quest] = []
        quest = Quest(
            title="Morning Walk",
            category="Health",
            difficulty=2,
            xp_reward=120,
            stat_requirements={"constitution": 2},
            stat_rewards={"constitution": 0.5},
            created_at=NOW,
            storyline_id="storyline-health",
        )
        with self.SessionLocal.begin() as session:
            self.quests.build_add_quests_operation(5, [quest, Quest(title="Call Home")], stored)(session)

        self.assertEqual(2, len(stored))
        self.assertTrue(all(item.id is not None and item.user_id == 5 for item in stored))

        loaded = self.quests.get(stored[0].id)
        self.assertEqual(("Morning Walk", "Health", 2, 120), (loaded.title, loaded.category, loaded.difficulty, loaded.xp_reward))
        self.assertEqual({"constitution": 2.0}, loaded.stat_requirements)
        self.assertEqual(NOW, loaded.created_at)
        self.assertEqual("storyline-health", loaded.storyline_id)

        completed = loaded.complete(NOW)
        self.quests.build_save_quest_operation(completed)(None)

        reloaded = self.quests.get(stored[0].id)
        self.assertEqual(QuestStatus.COMPLETED, reloaded.status)
        self.assertEqual(NOW, reloaded.completed_at)
        self.assertEqual(["Morning Walk", "Call Home"], [item.title for item in self.quests.list_for_user(5)])
        self.assertEqual(["Call Home"], [item.title for item in self.quests.list_active_for_user(5)])

    def test_journal_entries_keep_analysis(self) -> None:
        analysis = AnalysisResult(
            mood=Mood.POSITIVE,
            tags=("health",),
            growth_areas=("rest",),
            stat_changes={"wisdom": 0.5},
            progression=CharacterProgression(insights=("Slow down",)),
        )
        stored: list[JournalEntry] = []
        self.journals.build_add_entry_operation(
            JournalEntry(user_id=1, content="Slept well", created_at=NOW, analysis=analysis), stored
        )(None)

        entries = self.journals.list_for_user(1)
        self.assertEqual([stored[0].id], [entry.id for entry in entries])
        self.assertEqual("positive", entries[0].mood)
        self.assertEqual(["health"], entries[0].tags)
        self.assertEqual(("Slow down",), entries[0].analysis.insights)
        self.assertEqual("Slept well", entries[0].analysis.entry_text)

    @settings(max_examples=25, deadline=None)
    @given(
        level=st.integers(min_value=1, max_value=50),
        xp=st.integers(min_value=0, max_value=500_000),
        values=st.lists(st.floats(min_value=1, max_value=10, allow_nan=False), min_size=6, max_size=6),
    )
    def test_character_roundtrip_property(self, level, xp, values) -> None:
        character = Character(user_id=9, level=level, xp=xp, stats=StatSet(**dict(zip(STAT_NAMES, values))))
        self.characters.save(character)
        loaded = self.characters.get(9)

        self.assertEqual((level, xp), (loaded.level, loaded.xp))
        for name in STAT_NAMES:
            self.assertAlmostEqual(character.stats[name], loaded.stats[name])


if __name__ == "__main__":
    unittest.main()
