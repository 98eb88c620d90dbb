from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from journal_rpg.domain.errors import QuestAlreadyCompleted
from journal_rpg.domain.models.stats import normalize_stat_mapping


MIN_QUEST_DIFFICULTY = 1
MAX_QUEST_DIFFICULTY = 5
MIN_QUEST_XP_REWARD = 50
MAX_QUEST_XP_REWARD = 200
DEFAULT_QUEST_CATEGORY = "Personal"
MAX_QUEST_TITLE_LENGTH = 200
MAX_QUEST_CATEGORY_LENGTH = 60


class QuestStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


def _bounded_int(raw: Any, lower: int, upper: int, default: int) -> int:
    try:
        value = int(round(float(raw)))
    except (TypeError, ValueError, OverflowError):
        value = default
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class QuestMetadata:
    achievability: float
    growth_potential: float
    balance: float
    composite: float
    recommended: bool


@dataclass
class Quest:
    title: str
    description: str = ""
    category: str = DEFAULT_QUEST_CATEGORY
    difficulty: int = MIN_QUEST_DIFFICULTY
    xp_reward: int = MIN_QUEST_XP_REWARD
    stat_requirements: dict[str, float] = field(default_factory=dict)
    stat_rewards: dict[str, float] = field(default_factory=dict)
    status: QuestStatus = QuestStatus.ACTIVE
    id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    storyline_id: Optional[str] = None
    previous_quest_id: Optional[int] = None
    next_quest_id: Optional[int] = None
    metadata: Optional[QuestMetadata] = None

    def __post_init__(self) -> None:
        self.title = str(self.title or "").strip()[:MAX_QUEST_TITLE_LENGTH].rstrip() or "Untitled Quest"
        self.description = str(self.description or "").strip()
        self.category = str(self.category or "").strip()[:MAX_QUEST_CATEGORY_LENGTH].rstrip() or DEFAULT_QUEST_CATEGORY
        self.difficulty = _bounded_int(self.difficulty, MIN_QUEST_DIFFICULTY, MAX_QUEST_DIFFICULTY, MIN_QUEST_DIFFICULTY)
        self.xp_reward = _bounded_int(self.xp_reward, MIN_QUEST_XP_REWARD, MAX_QUEST_XP_REWARD, MIN_QUEST_XP_REWARD)
        self.stat_requirements = normalize_stat_mapping(self.stat_requirements)
        self.stat_rewards = normalize_stat_mapping(self.stat_rewards)
        try:
            self.status = QuestStatus(str(getattr(self.status, "value", self.status) or "active").strip().lower())
        except ValueError:
            self.status = QuestStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == QuestStatus.COMPLETED

    def complete(self, completed_at: datetime) -> "Quest":
        if self.is_completed:
            raise QuestAlreadyCompleted(f"Quest {self.id} is already completed")
        return replace(self, status=QuestStatus.COMPLETED, completed_at=completed_at)

    def with_metadata(self, metadata: QuestMetadata) -> "Quest":
        return replace(self, metadata=metadata)


@dataclass(frozen=True)
class RawReward:
    xp_gained: int = 0
    stat_updates: Mapping[str, float] = field(default_factory=dict)
    achievements: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScaledReward:
    xp_gained: int = 0
    stat_updates: Mapping[str, float] = field(default_factory=dict)
    achievements: tuple[str, ...] = ()
    fallback: bool = False


@dataclass(frozen=True)
class QuestChain:
    id: str
    title: str
    description: str
    category: str
    quests: tuple[Quest, ...]
    min_level: int
    stat_requirements: Mapping[str, float] = field(default_factory=dict)
