from __future__ import annotations

import copy
from collections.abc import Callable, Sequence

from journal_rpg.domain.models.character import Character


_SNAPSHOT_FIELDS = ("_characters", "_quests", "_entries", "_next_id")


def _snapshot(repo) -> dict[str, object]:
    return {name: copy.deepcopy(getattr(repo, name)) for name in _SNAPSHOT_FIELDS if hasattr(repo, name)}


def _restore(repo, snapshot: dict[str, object]) -> None:
    for name, value in snapshot.items():
        setattr(repo, name, value)


def create_inmemory_atomic_persistor(character_repo, quest_repo, journal_repo) -> Callable[..., None]:
    repos = (character_repo, quest_repo, journal_repo)

    def _persist(
        character: Character,
        operations: Sequence[Callable[[object], None]] | None = None,
    ) -> None:
        snapshots = [_snapshot(repo) for repo in repos]
        try:
            character_repo.save(character)
            for operation in operations or ():
                operation(None)
        except Exception:
            for repo, snapshot in zip(repos, snapshots):
                _restore(repo, snapshot)
            raise

    return _persist
