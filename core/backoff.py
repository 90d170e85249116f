#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
BackoffExecutor - retry a single upstream call with exponential backoff + jitter

Attempt i (0-based) that fails with a transient error waits
``base_delay_ms * 2**i + uniform[0, jitter_ms)`` before attempt i+1.
Terminal errors propagate immediately; a transient error on the last
attempt surfaces as RetriesExhaustedError.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from config.constants import RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY_MS, RETRY_JITTER_MS
from config.logging_config import get_logger
from core.errors import RetriesExhaustedError, extract_status_code, is_transient_error

logger = get_logger(__name__)


Task = Callable[[], Awaitable[Any]]


@dataclass
class RetryPolicy:
    """
    Retry budget and backoff shape

    Attributes:
        max_attempts: Total calls allowed per invocation (>= 1)
        base_delay_ms: Delay before the second attempt, doubled each time
        jitter_ms: Upper bound (exclusive) of the random extra delay
    """
    max_attempts: int = RETRY_MAX_ATTEMPTS
    base_delay_ms: float = RETRY_BASE_DELAY_MS
    jitter_ms: float = RETRY_JITTER_MS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay_ms < 0 or self.jitter_ms < 0:
            raise ValueError("base_delay_ms and jitter_ms must be non-negative")

    @classmethod
    def from_settings(cls, settings) -> 'RetryPolicy':
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay_ms=settings.retry_base_delay_ms,
            jitter_ms=settings.retry_jitter_ms,
        )

    def delay_ms(self, attempt_index: int, jitter_fraction: float) -> float:
        """Backoff before retrying after ``attempt_index`` failed."""
        return self.base_delay_ms * (2 ** attempt_index) + jitter_fraction * self.jitter_ms


@dataclass
class RetryState:
    """Bookkeeping for one execute() call"""
    attempt_number: int = 0
    last_error: Optional[BaseException] = None
    delays_ms: List[float] = field(default_factory=list)


class BackoffExecutor:
    """
    Executes a zero-argument async task, retrying transient upstream failures.

    Usage:
        executor = BackoffExecutor(RetryPolicy(max_attempts=3))
        result = await executor.execute(lambda: provider.generate(request))
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        classifier: Callable[[BaseException], bool] = is_transient_error,
    ):
        """
        Args:
            policy: Retry budget and delays (defaults from config.constants)
            sleep: Coroutine taking seconds; swapped out in tests
            rng: Random source for jitter
            classifier: Decides whether an error is worth retrying
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._is_transient = classifier

    async def execute(self, task: Task, label: str = "task") -> Any:
        """Run ``task`` until it succeeds, fails terminally or runs out of attempts."""
        state = RetryState()
        last_index = self.policy.max_attempts - 1

        while True:
            try:
                result = await task()
            except Exception as e:
                state.last_error = e

                if not self._is_transient(e):
                    logger.error(
                        f"{label}: terminal error on attempt "
                        f"{state.attempt_number + 1}/{self.policy.max_attempts}: {e}"
                    )
                    raise

                if state.attempt_number >= last_index:
                    logger.error(
                        f"{label}: giving up after {self.policy.max_attempts} attempt(s), "
                        f"last status {extract_status_code(e)}: {e}"
                    )
                    raise RetriesExhaustedError(self.policy.max_attempts, e) from e

                delay = self.policy.delay_ms(state.attempt_number, self._rng.random())
                state.delays_ms.append(delay)
                logger.warning(
                    f"{label}: transient error (status {extract_status_code(e)}) on attempt "
                    f"{state.attempt_number + 1}/{self.policy.max_attempts}, "
                    f"retrying in {delay / 1000:.2f}s"
                )
                await self._sleep(delay / 1000.0)
                state.attempt_number += 1
                continue

            if state.attempt_number > 0:
                logger.info(f"{label}: succeeded on attempt {state.attempt_number + 1}")
            return result


async def execute_with_retry(
    task: Task,
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    base_delay_ms: float = RETRY_BASE_DELAY_MS,
) -> Any:
    """One-shot helper: ``BackoffExecutor(RetryPolicy(...)).execute(task)``."""
    policy = RetryPolicy(max_attempts=max_attempts, base_delay_ms=base_delay_ms)
    return await BackoffExecutor(policy).execute(task)
