from dataclasses import dataclass


@dataclass
class ProgressionEvent:
    """Base for everything the journal service announces about one user."""

    user_id: int


@dataclass
class JournalEntryRecorded(ProgressionEvent):
    journal_id: int | None
    mood: str
    xp_gained: int
    quests_created: int
    analysis_fallback: bool


@dataclass
class QuestCompletedEvent(ProgressionEvent):
    quest_id: int
    xp_gained: int
    reward_fallback: bool


@dataclass
class LevelUpAppliedEvent(ProgressionEvent):
    from_level: int
    to_level: int
    xp: int
