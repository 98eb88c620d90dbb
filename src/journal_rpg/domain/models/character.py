from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from journal_rpg.domain.models.stats import StatSet, stat_set_from_mapping


DEFAULT_CHARACTER_NAME = "Adventurer"
DEFAULT_CHARACTER_CLASS = "Warrior"


def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        parsed = raw
    else:
        text = str(raw or "").strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = datetime.fromtimestamp(0, tz=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Achievement:
    title: str
    timestamp: datetime
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": self.title, "timestamp": self.timestamp.isoformat()}
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Achievement":
        description = raw.get("description")
        return cls(
            title=str(raw.get("title", "") or "").strip() or "Achievement",
            timestamp=_parse_timestamp(raw.get("timestamp")),
            description=str(description) if description is not None else None,
        )


@dataclass
class Character:
    user_id: int
    name: str = DEFAULT_CHARACTER_NAME
    class_name: str = DEFAULT_CHARACTER_CLASS
    level: int = 1
    xp: int = 0
    stats: StatSet = field(default_factory=StatSet)
    achievements: list[Achievement] = field(default_factory=list)

    def __post_init__(self) -> None:
        try:
            self.level = max(1, int(self.level))
        except (TypeError, ValueError):
            self.level = 1
        try:
            self.xp = max(0, int(self.xp))
        except (TypeError, ValueError):
            self.xp = 0
        if not isinstance(self.stats, StatSet):
            self.stats = stat_set_from_mapping(self.stats if isinstance(self.stats, Mapping) else None)
        self.achievements = [
            item if isinstance(item, Achievement) else Achievement.from_mapping(item)
            for item in list(self.achievements or [])
            if isinstance(item, (Achievement, Mapping))
        ]

    def recent_achievements(self, *, now: datetime, window_days: int) -> list[Achievement]:
        horizon = now.timestamp() - window_days * 86400
        return [item for item in self.achievements if item.timestamp.timestamp() >= horizon]

    @classmethod
    def from_mapping(cls, user_id: int, raw: Mapping[str, Any] | None) -> "Character":
        payload = raw or {}
        return cls(
            user_id=int(user_id),
            name=str(payload.get("name", "") or "").strip() or DEFAULT_CHARACTER_NAME,
            class_name=str(payload.get("class", payload.get("class_name", "")) or "").strip() or DEFAULT_CHARACTER_CLASS,
            level=payload.get("level", 1),
            xp=payload.get("xp", 0),
            stats=stat_set_from_mapping(payload.get("stats"), lower=float("-inf"), upper=float("inf")),
            achievements=list(payload.get("achievements", []) or []),
        )
