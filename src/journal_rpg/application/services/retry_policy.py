from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff: ``attempts`` tries, sleeping base, 2*base, ..."""

    attempts: int = 3
    base_delay_seconds: float = 1.0

    def delays(self) -> list[float]:
        count = max(1, int(self.attempts))
        return [max(0.0, self.base_delay_seconds) * (2 ** index) for index in range(count - 1)]

    def call(self, operation: Callable[[], T], *, label: str = "operation") -> T:
        """Run ``operation`` until it succeeds; re-raise the last error when attempts run out."""

        attempts = max(1, int(self.attempts))
        for attempt_index in range(attempts):
            try:
                return operation()
            except Exception as exc:
                if attempt_index >= attempts - 1:
                    raise
                delay = max(0.0, self.base_delay_seconds) * (2 ** attempt_index)
                logger.warning(
                    "%s failed, retrying in %.2fs",
                    label,
                    delay,
                    extra={"attempt": attempt_index + 1, "error": repr(exc)},
                )
                if delay > 0:
                    time.sleep(delay)
        raise RuntimeError("unreachable")
