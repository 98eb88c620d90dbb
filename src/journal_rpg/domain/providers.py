from abc import ABC, abstractmethod
from typing import List

from journal_rpg.domain.models.analysis import AnalysisResult
from journal_rpg.domain.models.quest import Quest, RawReward
from journal_rpg.domain.models.stats import StatSet


class AnalysisProvider(ABC):
    @abstractmethod
    def analyze(self, text: str) -> AnalysisResult:
        raise NotImplementedError


class QuestGenerationProvider(ABC):
    @abstractmethod
    def generate(self, analysis: AnalysisResult, stats: StatSet) -> List[Quest]:
        """Return unscored candidate quests for an analysed entry."""
        raise NotImplementedError


class RewardProvider(ABC):
    @abstractmethod
    def calculate_completion(self, quest: Quest, stats: StatSet) -> RawReward:
        raise NotImplementedError
