from dataclasses import dataclass, field
from typing import Dict, List, Optional

from journal_rpg.domain.models.character import Character
from journal_rpg.domain.models.journal import JournalEntry
from journal_rpg.domain.models.quest import Quest, QuestChain, ScaledReward


ANALYSIS_FALLBACK_WARNING = "AI analysis partially failed - some features limited"
QUEST_GENERATION_WARNING = "Quest generation unavailable - no new quests this time"
REWARD_FALLBACK_WARNING = "Reward calculation unavailable - standard reward applied"


@dataclass
class JournalSubmission:
    journal: JournalEntry
    character: Character
    quests: List[Quest] = field(default_factory=list)
    xp_gained: int = 0
    leveled_up: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def partial_success(self) -> bool:
        return bool(self.warnings)


@dataclass
class QuestCompletion:
    quest: Quest
    reward: ScaledReward
    character: Character
    storyline_progress: float = 0.0
    next_quests: List[Quest] = field(default_factory=list)
    leveled_up: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass
class QuestLogView:
    quests: List[Quest] = field(default_factory=list)
    chains: List[QuestChain] = field(default_factory=list)
    available_quest_ids: List[int] = field(default_factory=list)


@dataclass
class CharacterSheetView:
    user_id: int
    name: str
    class_name: str
    level: int
    xp: int
    next_level_xp: int
    xp_to_next_level: int
    stats: Dict[str, float] = field(default_factory=dict)
    achievement_count: int = 0
    latest_achievement: Optional[str] = None
