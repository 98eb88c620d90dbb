from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping


MIN_STAT_VALUE = 1
MAX_STAT_VALUE = 10

STAT_NAMES: tuple[str, ...] = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
)

# Keys used by the four-category wellness variant of older payloads.
LEGACY_STAT_ALIASES: dict[str, str] = {
    "wellness": "constitution",
    "social": "charisma",
    "growth": "intelligence",
    "achievement": "strength",
}


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def normalize_stat_name(raw: object) -> str | None:
    name = str(raw or "").strip().lower()
    name = LEGACY_STAT_ALIASES.get(name, name)
    return name if name in STAT_NAMES else None


def _coerce_float(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def normalize_stat_mapping(raw: Mapping[str, Any] | None) -> dict[str, float]:
    """Return a partial stat map restricted to the known vocabulary.

    Unknown keys and non-numeric values are dropped; legacy category keys are
    folded onto their stat (summing when both spellings are present).
    """

    if not isinstance(raw, Mapping):
        return {}
    normalized: dict[str, float] = {}
    for key, value in raw.items():
        name = normalize_stat_name(key)
        number = _coerce_float(value)
        if name is None or number is None:
            continue
        normalized[name] = normalized.get(name, 0.0) + number
    return {name: normalized[name] for name in STAT_NAMES if name in normalized}


@dataclass(frozen=True)
class StatSet:
    strength: float = MIN_STAT_VALUE
    dexterity: float = MIN_STAT_VALUE
    constitution: float = MIN_STAT_VALUE
    intelligence: float = MIN_STAT_VALUE
    wisdom: float = MIN_STAT_VALUE
    charisma: float = MIN_STAT_VALUE

    def get(self, name: str, default: float = 0.0) -> float:
        stat = normalize_stat_name(name)
        if stat is None:
            return default
        return float(getattr(self, stat))

    def __getitem__(self, name: str) -> float:
        stat = normalize_stat_name(name)
        if stat is None:
            raise KeyError(name)
        return float(getattr(self, stat))

    def __iter__(self) -> Iterator[str]:
        return iter(STAT_NAMES)

    def items(self) -> list[tuple[str, float]]:
        return [(name, float(getattr(self, name))) for name in STAT_NAMES]

    def as_dict(self) -> dict[str, float]:
        return dict(self.items())

    def max_value(self) -> float:
        return max(value for _, value in self.items())

    def add_deltas(
        self,
        deltas: Mapping[str, float],
        *,
        lower: float = MIN_STAT_VALUE,
        upper: float = MAX_STAT_VALUE,
    ) -> "StatSet":
        """Add partial deltas and clamp every stat into ``[lower, upper]``."""

        values = self.as_dict()
        for name, delta in normalize_stat_mapping(deltas).items():
            values[name] = values[name] + delta
        return StatSet(**{name: clamp(value, lower, upper) for name, value in values.items()})

    @classmethod
    def uniform(cls, value: float) -> "StatSet":
        return cls(**{name: float(value) for name in STAT_NAMES})


def stat_set_from_mapping(
    attributes: Mapping[str, Any] | None,
    *,
    default: float = MIN_STAT_VALUE,
    lower: float = MIN_STAT_VALUE,
    upper: float = MAX_STAT_VALUE,
) -> StatSet:
    values = normalize_stat_mapping(attributes)
    return StatSet(
        **{name: clamp(values.get(name, float(default)), lower, upper) for name in STAT_NAMES}
    )
