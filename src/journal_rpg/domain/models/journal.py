from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from journal_rpg.domain.models.analysis import AnalysisResult


@dataclass
class JournalEntry:
    user_id: int
    content: str
    created_at: datetime
    analysis: AnalysisResult = field(default_factory=AnalysisResult)
    id: Optional[int] = None

    @property
    def mood(self) -> str:
        return self.analysis.mood.value

    @property
    def tags(self) -> list[str]:
        return list(self.analysis.tags)
