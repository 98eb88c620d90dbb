from __future__ import annotations

from journal_rpg.application.services.balance_tables import DEFAULT_CONFIG, ProgressionConfig
from journal_rpg.domain.models.quest import Quest, QuestMetadata
from journal_rpg.domain.models.stats import StatSet, clamp


class QuestScorer:
    """Scores how well a quest fits a character's current stats.

    The three component scores and the composite all fall in ``[0, 1]``.
    Scoring is a pure function of the quest and the stats.
    """

    def __init__(self, config: ProgressionConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def achievability(self, quest: Quest, stats: StatSet) -> float:
        requirements = quest.stat_requirements
        if not requirements:
            return 1.0
        scores: list[float] = []
        for stat, required in requirements.items():
            current = stats.get(stat)
            if required <= 0 or current >= required:
                scores.append(1.0)
            else:
                scores.append(clamp(current / required, 0.0, 1.0))
        return sum(scores) / len(scores)

    def growth_potential(self, quest: Quest, stats: StatSet) -> float:
        rewards = quest.stat_rewards
        if not rewards:
            return self.config.neutral_growth_score
        cap = self.config.max_stat_value
        scores = [
            reward * max(0.0, cap - stats.get(stat)) / cap
            for stat, reward in rewards.items()
        ]
        return clamp(sum(scores) / len(scores), 0.0, 1.0)

    def balance(self, quest: Quest, stats: StatSet) -> float:
        requirements = quest.stat_requirements
        if not requirements:
            return 1.0
        differences = [abs(stats.get(stat) - required) for stat, required in requirements.items()]
        average = sum(differences) / len(differences)
        return clamp(1 - average / self.config.balance_divisor, 0.0, 1.0)

    def score(self, quest: Quest, stats: StatSet) -> QuestMetadata:
        achievability = self.achievability(quest, stats)
        growth = self.growth_potential(quest, stats)
        balance = self.balance(quest, stats)
        w_achieve, w_growth, w_balance = self.config.composite_weights
        composite = clamp(w_achieve * achievability + w_growth * growth + w_balance * balance, 0.0, 1.0)
        return QuestMetadata(
            achievability=achievability,
            growth_potential=growth,
            balance=balance,
            composite=composite,
            recommended=composite > self.config.recommend_threshold,
        )
