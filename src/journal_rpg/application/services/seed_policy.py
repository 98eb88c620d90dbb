from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Sequence, TypeVar


T = TypeVar("T")


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _canonical(item) for key, item in sorted(value.items(), key=lambda pair: str(pair[0]))}
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(item) for item in value), key=lambda item: json.dumps(item, sort_keys=True, default=str))
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def derive_seed(namespace: str, context: Mapping[str, Any]) -> int:
    """Stable 32-bit seed for ``context``; identical inputs give identical seeds across runs."""

    serialized = json.dumps(
        {"namespace": namespace, "context": _canonical(context)},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return int(hashlib.sha256(serialized.encode("utf-8")).hexdigest(), 16) % (2**32)


def seeded_choice(options: Sequence[T], namespace: str, context: Mapping[str, Any]) -> T:
    if not options:
        raise ValueError("seeded_choice requires at least one option")
    return options[derive_seed(namespace, context) % len(options)]
