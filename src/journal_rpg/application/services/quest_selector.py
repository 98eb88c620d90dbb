from __future__ import annotations

from typing import Iterable

from journal_rpg.application.services.balance_tables import DEFAULT_CONFIG, ProgressionConfig
from journal_rpg.application.services.quest_scoring import QuestScorer
from journal_rpg.domain.models.quest import Quest
from journal_rpg.domain.models.stats import StatSet


class QuestSelector:
    def __init__(self, config: ProgressionConfig = DEFAULT_CONFIG, scorer: QuestScorer | None = None) -> None:
        self.config = config
        self.scorer = scorer or QuestScorer(config)

    def is_meetable(self, stats: StatSet, stat: str, required: float) -> bool:
        current = stats.get(stat)
        return current >= required - self.config.requirement_grace

    def has_meetable_requirements(self, quest: Quest, stats: StatSet) -> bool:
        requirements = quest.stat_requirements
        if not requirements:
            return True
        meetable = sum(1 for stat, required in requirements.items() if self.is_meetable(stats, stat, required))
        return meetable / len(requirements) >= self.config.requirement_threshold

    def select(
        self,
        candidates: Iterable[Quest],
        stats: StatSet,
        level: int,
        max_results: int | None = None,
    ) -> list[Quest]:
        limit = self.config.max_active_quests if max_results is None else max(0, int(max_results))
        admitted = [
            quest
            for quest in candidates
            if quest.difficulty <= level and self.has_meetable_requirements(quest, stats)
        ]
        scored = [quest.with_metadata(self.scorer.score(quest, stats)) for quest in admitted]
        # sorted() is stable, so equal composites keep their input order.
        scored = sorted(scored, key=lambda quest: -quest.metadata.composite)
        return scored[:limit]
