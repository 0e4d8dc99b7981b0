# src/chipqc/engine/retry.py
"""HopRetrier: bounded per-hop retry with tenacity.

A hop is retried only for retryable errors (MoveTimeout in practice),
with a fixed backoff between attempts, up to max_attempts total tries.
Exhaustion is reported as MaxAttemptsExceeded; the executor turns that
into a permanent electrode failure. Non-retryable errors propagate
unchanged after a single attempt.

The sleep function is injected so the policy works the same with a real
clock, a mock clock, or a cooperative scheduler's sleep.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from chipqc.contracts.errors import MaxAttemptsExceeded

if TYPE_CHECKING:
    from chipqc.core.config import RetrySettings

T = TypeVar("T")


@dataclass(frozen=True)
class HopRetryConfig:
    """Timeout and backoff policy for a single hop.

    max_attempts is the TOTAL number of tries, not the number of retries.
    So max_attempts=3 means: try, retry, retry (3 total).
    """

    max_attempts: int = 3
    hop_timeout: float = 4.0  # seconds per attempt
    backoff: float = 1.0  # seconds between attempts

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.hop_timeout <= 0:
            raise ValueError("hop_timeout must be > 0")
        if self.backoff < 0:
            raise ValueError("backoff must be >= 0")

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> HopRetryConfig:
        return cls(
            max_attempts=settings.max_attempts,
            hop_timeout=settings.hop_timeout_seconds,
            backoff=settings.backoff_seconds,
        )


class HopRetrier:
    """Runs one hop under a HopRetryConfig.

    Example:
        retrier = HopRetrier(HopRetryConfig(max_attempts=3), sleep=clock.sleep)

        messages = retrier.execute(
            lambda attempt: mover.move([source, target], timeout=4.0),
            is_retryable=lambda e: isinstance(e, MoveTimeout),
            on_attempt_failed=lambda attempt, error: emit_attempt_fail(attempt),
        )
    """

    def __init__(self, config: HopRetryConfig, sleep: Callable[[float], None] = time.sleep) -> None:
        self._config = config
        self._sleep = sleep

    @property
    def config(self) -> HopRetryConfig:
        return self._config

    def execute(
        self,
        operation: Callable[[int], T],
        *,
        is_retryable: Callable[[BaseException], bool],
        on_attempt_failed: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """Execute operation, retrying retryable failures.

        Args:
            operation: Called with the 1-based attempt number
            is_retryable: Whether an error should be retried
            on_attempt_failed: Called for every retryable failure, including
                the last one, before any backoff sleep

        Returns:
            Result of the first successful attempt

        Raises:
            MaxAttemptsExceeded: If every attempt failed with a retryable error
            Exception: The first non-retryable error, unchanged
        """
        attempt = 0
        last_error: BaseException | None = None

        try:
            for attempt_state in Retrying(
                stop=stop_after_attempt(self._config.max_attempts),
                wait=wait_fixed(self._config.backoff),
                retry=retry_if_exception(is_retryable),
                sleep=self._sleep,
                reraise=False,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    try:
                        return operation(attempt)
                    except Exception as e:
                        last_error = e
                        if on_attempt_failed is not None and is_retryable(e):
                            on_attempt_failed(attempt, e)
                        raise

        except RetryError as e:
            final_error = last_error or e.last_attempt.exception()
            assert final_error is not None, "RetryError without exception is impossible"
            raise MaxAttemptsExceeded(attempt, final_error) from e

        raise RuntimeError("Unexpected state in retry loop")  # pragma: no cover
