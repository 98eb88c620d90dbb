class NotFoundError(LookupError):
    pass


class CharacterNotFound(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"No character for user {user_id}")
        self.user_id = user_id


class QuestNotFound(NotFoundError):
    def __init__(self, quest_id: int) -> None:
        super().__init__(f"Quest {quest_id} not found")
        self.quest_id = quest_id


class QuestAlreadyCompleted(ValueError):
    pass


class ProviderError(RuntimeError):
    """An external analysis, generation or reward call failed."""
