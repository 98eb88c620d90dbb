from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class CircuitOpenError(RuntimeError):
    pass


def _is_truthy(value: str | None, *, default: str) -> bool:
    normalized = str(value if value is not None else default).strip().lower()
    return normalized in {"1", "true", "yes"}


@dataclass
class _CircuitState:
    failures: int = 0
    opened_until_epoch: float = 0.0


@dataclass
class CircuitBreaker:
    """Per-host failure counter that refuses calls for a while once tripped."""

    enabled: bool = True
    failure_threshold: int = 3
    reset_seconds: float = 120.0
    clock: Callable[[], float] = time.time
    _states: dict[str, _CircuitState] = field(default_factory=dict, repr=False)

    @classmethod
    def from_env(cls) -> "CircuitBreaker":
        return cls(
            enabled=_is_truthy(os.getenv("JOURNAL_RPG_HTTP_CIRCUIT_BREAKER_ENABLED"), default="1"),
            failure_threshold=max(1, int(os.getenv("JOURNAL_RPG_HTTP_CIRCUIT_FAILURE_THRESHOLD", "3"))),
            reset_seconds=max(0.0, float(os.getenv("JOURNAL_RPG_HTTP_CIRCUIT_RESET_SECONDS", "120"))),
        )

    def before_attempt(self, key: str) -> None:
        if not self.enabled:
            return
        state = self._states.get(key)
        if state is None:
            return
        now = self.clock()
        if state.opened_until_epoch > now:
            raise CircuitOpenError(f"HTTP circuit open for {key} until {int(state.opened_until_epoch)}")
        if state.opened_until_epoch > 0:
            # Half-open: allow one attempt with a clean slate.
            self._states[key] = _CircuitState()

    def record_success(self, key: str) -> None:
        if self.enabled and key in self._states:
            self._states[key] = _CircuitState()

    def record_failure(self, key: str) -> None:
        if not self.enabled:
            return
        state = self._states.setdefault(key, _CircuitState())
        state.failures += 1
        if state.failures >= self.failure_threshold:
            state.opened_until_epoch = self.clock() + self.reset_seconds
            logger.warning("HTTP circuit opened", extra={"circuit": key, "failures": state.failures})

    def is_open(self, key: str) -> bool:
        state = self._states.get(key)
        return bool(state and state.opened_until_epoch > self.clock())


def circuit_key(client: httpx.Client) -> str:
    return str(getattr(client, "base_url", "unknown") or "unknown")


def is_retryable_exception(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def request_json_with_retry(
    client: httpx.Client,
    method: str,
    path: str,
    *,
    json_body: dict[str, Any] | None = None,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    retries: int = 0,
    backoff_seconds: float = 0.2,
    breaker: CircuitBreaker | None = None,
) -> dict[str, Any]:
    attempts = max(0, int(retries)) + 1
    key = circuit_key(client)

    for attempt_index in range(attempts):
        try:
            if breaker is not None:
                breaker.before_attempt(key)
            response = client.request(method, path, json=json_body, params=params, headers=headers)
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise httpx.HTTPStatusError(
                    f"Retryable HTTP status: {response.status_code}",
                    request=response.request,
                    response=response,
                )
            response.raise_for_status()
            payload = response.json()
            if breaker is not None:
                breaker.record_success(key)
            return payload if isinstance(payload, dict) else {"results": payload}
        except Exception as exc:
            should_retry = is_retryable_exception(exc)
            if should_retry and breaker is not None:
                breaker.record_failure(key)
            is_last_attempt = attempt_index >= attempts - 1
            if not should_retry or is_last_attempt:
                raise
            delay = max(0.0, backoff_seconds) * (2 ** attempt_index)
            logger.warning(
                "Retrying HTTP %s %s after %s",
                method,
                path,
                type(exc).__name__,
                extra={"attempt": attempt_index + 1, "delay_s": delay},
            )
            if delay > 0:
                time.sleep(delay)

    return {}


def post_json_with_retry(client: httpx.Client, path: str, body: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    return request_json_with_retry(client, "POST", path, json_body=body, **kwargs)
