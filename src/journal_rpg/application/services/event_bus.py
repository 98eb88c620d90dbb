from collections import defaultdict
from itertools import count
import logging
from typing import Callable, DefaultDict, Iterable, List, Type, TypeVar

from journal_rpg.domain.events import ProgressionEvent


EventT = TypeVar("EventT", bound=ProgressionEvent)

logger = logging.getLogger(__name__)


class EventBus:
    """In-process publish/subscribe for progression events.

    A handler subscribed to a base event class also receives its subclasses,
    so subscribing to ``ProgressionEvent`` observes every announcement.
    Handlers run in (priority, subscription order); a failing handler is
    logged and isolated so it can never undo the write that raised the event.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[tuple[int, int, Callable]]] = defaultdict(list)
        self._sequence = count()

    def subscribe(self, event_type: Type[EventT], handler: Callable[[EventT], None], *, priority: int = 100) -> None:
        if not (isinstance(event_type, type) and issubclass(event_type, ProgressionEvent)):
            raise TypeError(f"{event_type!r} is not a progression event type")
        self._handlers[event_type].append((int(priority), next(self._sequence), handler))

    def _handlers_for(self, event: ProgressionEvent) -> List[tuple[int, int, Callable]]:
        rows = [
            row
            for klass in type(event).__mro__
            if issubclass(klass, ProgressionEvent)
            for row in self._handlers.get(klass, ())
        ]
        return sorted(rows, key=lambda row: (row[0], row[1]))

    def publish(self, event: ProgressionEvent) -> List[Exception]:
        """Deliver ``event`` and return the exceptions raised by its handlers."""

        errors: List[Exception] = []
        for priority, _, handler in self._handlers_for(event):
            try:
                handler(event)
            except Exception as exc:
                errors.append(exc)
                logger.exception(
                    "Progression event handler failed",
                    extra={
                        "event_type": type(event).__name__,
                        "user_id": event.user_id,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                        "priority": priority,
                    },
                )
        return errors

    def publish_all(self, events: Iterable[ProgressionEvent]) -> List[Exception]:
        errors: List[Exception] = []
        for event in events:
            errors.extend(self.publish(event))
        return errors
