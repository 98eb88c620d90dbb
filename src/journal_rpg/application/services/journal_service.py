from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import replace
from datetime import datetime
from typing import Callable, Sequence

from journal_rpg.application.dtos import (
    ANALYSIS_FALLBACK_WARNING,
    QUEST_GENERATION_WARNING,
    REWARD_FALLBACK_WARNING,
    CharacterSheetView,
    JournalSubmission,
    QuestCompletion,
    QuestLogView,
)
from journal_rpg.application.services.balance_tables import DEFAULT_CONFIG, ProgressionConfig, xp_required_for_level
from journal_rpg.application.services.completion_rewards import CompletionRewardCalculator
from journal_rpg.application.services.event_bus import EventBus
from journal_rpg.application.services.progression_service import ProgressionEngine, utc_now
from journal_rpg.application.services.quest_selector import QuestSelector
from journal_rpg.application.services.retry_policy import RetryPolicy
from journal_rpg.application.services.storyline_service import (
    assign_storyline,
    is_quest_available,
    link_storylines,
    next_quests_in_chain,
    organize_quest_chains,
    storyline_progress,
)
from journal_rpg.domain.errors import CharacterNotFound, QuestNotFound
from journal_rpg.domain.events import JournalEntryRecorded, LevelUpAppliedEvent, ProgressionEvent, QuestCompletedEvent
from journal_rpg.domain.models.analysis import AnalysisResult, neutral_analysis
from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest, ScaledReward
from journal_rpg.domain.models.stats import StatSet
from journal_rpg.domain.providers import AnalysisProvider, QuestGenerationProvider, RewardProvider
from journal_rpg.domain.repositories import CharacterRepository, JournalRepository, PersistOperation, QuestRepository


logger = logging.getLogger(__name__)

AtomicPersistor = Callable[[Character, Sequence[PersistOperation]], None]


class JournalService:
    """Journal submission and quest completion around the progression engine.

    Provider failures never block the primary write: analysis falls back to a
    neutral reading, quest generation is retried then skipped, and rewards
    fall back to the standard completion reward. Each read-modify-write runs
    under a per-user lock and is persisted through one atomic call.
    """

    def __init__(
        self,
        *,
        character_repo: CharacterRepository,
        quest_repo: QuestRepository,
        journal_repo: JournalRepository,
        persist: AtomicPersistor,
        analysis_provider: AnalysisProvider,
        quest_generator: QuestGenerationProvider,
        reward_provider: RewardProvider,
        event_bus: EventBus | None = None,
        config: ProgressionConfig = DEFAULT_CONFIG,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.character_repo = character_repo
        self.quest_repo = quest_repo
        self.journal_repo = journal_repo
        self._persist = persist
        self.analysis_provider = analysis_provider
        self.quest_generator = quest_generator
        self.reward_provider = reward_provider
        self.event_bus = event_bus or EventBus()
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self.engine = ProgressionEngine(config=config, clock=clock)
        self.selector = QuestSelector(config=config)
        self.reward_calculator = CompletionRewardCalculator(config=config)
        # Entries vanish once no caller holds the lock.
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(int(user_id))
            if lock is None:
                lock = threading.Lock()
                self._locks[int(user_id)] = lock
            return lock

    def _require_character(self, user_id: int) -> Character:
        character = self.character_repo.get(user_id)
        if character is None:
            raise CharacterNotFound(user_id)
        return character

    def register_character(self, user_id: int, name: str | None = None, class_name: str | None = None) -> Character:
        with self._lock_for(user_id):
            existing = self.character_repo.get(user_id)
            if existing is not None:
                return existing
            character = Character(user_id=int(user_id))
            if name:
                character.name = str(name).strip() or character.name
            if class_name:
                character.class_name = str(class_name).strip() or character.class_name
            character.stats = StatSet.uniform(self.config.min_stat_value)
            self._persist(character, ())
            return character

    def _analyze(self, user_id: int, content: str) -> tuple[AnalysisResult, bool]:
        try:
            analysis = self.analysis_provider.analyze(content)
        except Exception:
            logger.exception("Journal analysis failed; using neutral analysis", extra={"user_id": user_id})
            return neutral_analysis(content), True
        if not analysis.entry_text:
            analysis = replace(analysis, entry_text=content)
        return analysis, False

    def _generate_quests(self, user_id: int, analysis: AnalysisResult, stats: StatSet) -> tuple[list[Quest], bool]:
        try:
            quests = self.retry_policy.call(
                lambda: self.quest_generator.generate(analysis, stats),
                label="quest generation",
            )
        except Exception:
            logger.exception(
                "Quest generation gave up after %s attempts",
                self.retry_policy.attempts,
                extra={"user_id": user_id},
            )
            return [], True
        return list(quests or []), False

    def submit_entry(self, user_id: int, content: str) -> JournalSubmission:
        text = str(content or "")
        if not text.strip():
            raise ValueError("Content is required")

        with self._lock_for(user_id):
            character = self._require_character(user_id)
            now = self._clock()
            warnings: list[str] = []

            analysis, analysis_fallback = self._analyze(user_id, text)
            if analysis_fallback:
                warnings.append(ANALYSIS_FALLBACK_WARNING)

            updated = self.engine.apply_analysis(character, analysis)

            candidates, generation_failed = self._generate_quests(user_id, analysis, updated.stats)
            if generation_failed:
                warnings.append(QUEST_GENERATION_WARNING)
            selected = self.selector.select(candidates, updated.stats, updated.level)
            selected = assign_storyline(
                [replace(quest, user_id=int(user_id), created_at=now) for quest in selected]
            )

            entry = JournalEntry(user_id=int(user_id), content=text, created_at=now, analysis=analysis)
            stored_entries: list[JournalEntry] = []
            stored_quests: list[Quest] = []
            self._persist(
                updated,
                [
                    self.journal_repo.build_add_entry_operation(entry, stored_entries),
                    self.quest_repo.build_add_quests_operation(int(user_id), selected, stored_quests),
                ],
            )

        leveled_up = updated.level > character.level
        xp_gained = updated.xp - character.xp
        journal = stored_entries[0] if stored_entries else entry
        events: list[ProgressionEvent] = [
            JournalEntryRecorded(
                user_id=int(user_id),
                journal_id=journal.id,
                mood=analysis.mood.value,
                xp_gained=xp_gained,
                quests_created=len(stored_quests),
                analysis_fallback=analysis_fallback,
            )
        ]
        if leveled_up:
            events.append(
                LevelUpAppliedEvent(user_id=int(user_id), from_level=character.level, to_level=updated.level, xp=updated.xp)
            )
        self.event_bus.publish_all(events)

        return JournalSubmission(
            journal=journal,
            character=updated,
            quests=stored_quests,
            xp_gained=xp_gained,
            leveled_up=leveled_up,
            warnings=warnings,
        )

    def _reward_for(self, quest: Quest, character: Character) -> ScaledReward:
        try:
            raw = self.reward_provider.calculate_completion(quest, character.stats)
        except Exception:
            logger.exception(
                "Quest reward calculation failed; using fallback reward",
                extra={"user_id": character.user_id, "quest_id": quest.id},
            )
            return self.reward_calculator.fallback(character)
        return self.reward_calculator.scale(raw, character, quest)

    def complete_quest(self, user_id: int, quest_id: int) -> QuestCompletion:
        with self._lock_for(user_id):
            quest = self.quest_repo.get(quest_id)
            if quest is None or quest.user_id != int(user_id):
                raise QuestNotFound(quest_id)
            character = self._require_character(user_id)
            completed = quest.complete(self._clock())

            reward = self._reward_for(quest, character)
            warnings = [REWARD_FALLBACK_WARNING] if reward.fallback else []
            updated = self.engine.apply_reward(character, reward, quest)
            self._persist(updated, [self.quest_repo.build_save_quest_operation(completed)])
            all_quests = self.quest_repo.list_for_user(user_id)

        leveled_up = updated.level > character.level
        events: list[ProgressionEvent] = [
            QuestCompletedEvent(
                user_id=int(user_id),
                quest_id=int(quest_id),
                xp_gained=reward.xp_gained,
                reward_fallback=reward.fallback,
            )
        ]
        if leveled_up:
            events.append(
                LevelUpAppliedEvent(user_id=int(user_id), from_level=character.level, to_level=updated.level, xp=updated.xp)
            )
        self.event_bus.publish_all(events)

        return QuestCompletion(
            quest=completed,
            reward=reward,
            character=updated,
            storyline_progress=storyline_progress(all_quests, completed.storyline_id),
            next_quests=next_quests_in_chain(completed, all_quests),
            leveled_up=leveled_up,
            warnings=warnings,
        )

    def list_quests(self, user_id: int) -> QuestLogView:
        character = self._require_character(user_id)
        quests = link_storylines(self.quest_repo.list_for_user(user_id))
        scored = [
            quest if quest.is_completed else quest.with_metadata(self.selector.scorer.score(quest, character.stats))
            for quest in quests
        ]
        completed_ids = [quest.id for quest in scored if quest.is_completed and quest.id is not None]
        available_ids = [
            quest.id
            for quest in scored
            if not quest.is_completed
            and quest.id is not None
            and is_quest_available(quest, completed_ids, character.stats, character.level)
        ]
        return QuestLogView(quests=scored, chains=organize_quest_chains(scored), available_quest_ids=available_ids)

    def list_entries(self, user_id: int) -> list[JournalEntry]:
        """Journal history for ``user_id``, newest first."""

        self._require_character(user_id)
        return self.journal_repo.list_for_user(user_id)

    def character_sheet(self, user_id: int) -> CharacterSheetView:
        character = self._require_character(user_id)
        next_level_xp = xp_required_for_level(character.level + 1, self.config)
        latest = character.achievements[-1].title if character.achievements else None
        return CharacterSheetView(
            user_id=character.user_id,
            name=character.name,
            class_name=character.class_name,
            level=character.level,
            xp=character.xp,
            next_level_xp=next_level_xp,
            xp_to_next_level=max(0, next_level_xp - character.xp),
            stats=character.stats.as_dict(),
            achievement_count=len(character.achievements),
            latest_achievement=latest,
        )
