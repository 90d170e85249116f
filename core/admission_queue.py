#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
AdmissionQueue - process-wide gate in front of every AI call

Guarantees:
- at most ``concurrency_limit`` tasks run at once (1 by default)
- at most ``rate_limit`` task starts per fixed ``window_ms`` window
  (a fixed window, so a burst of up to 2 x rate_limit can straddle a boundary)
- tasks start strictly in submission order (FIFO, no priorities)

All state is touched only from the event loop thread; the pump never awaits,
so read-decide-mutate-start is atomic with respect to other submissions and
completions. Create one instance at startup and pass it to whoever issues
AI calls.
"""

import asyncio
import itertools
import time
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Awaitable, Callable, Deque, Optional

from config.constants import (
    QUEUE_CONCURRENCY_LIMIT,
    QUEUE_RATE_LIMIT,
    QUEUE_WINDOW_MS,
    QUEUE_SECONDS_PER_POSITION,
)
from config.logging_config import get_logger
from core.errors import QueueLogicError

logger = get_logger(__name__)


Task = Callable[[], Awaitable[Any]]
PositionCallback = Callable[[int], None]


@dataclass
class QueueConfig:
    """
    Admission policy

    Attributes:
        concurrency_limit: Max tasks executing simultaneously
        rate_limit: Max task starts per window
        window_ms: Fixed window length in milliseconds
        seconds_per_position: Per-position wait estimate shown to users
        strict: Raise QueueLogicError on invariant violations instead of logging
    """
    concurrency_limit: int = QUEUE_CONCURRENCY_LIMIT
    rate_limit: int = QUEUE_RATE_LIMIT
    window_ms: float = QUEUE_WINDOW_MS
    seconds_per_position: float = QUEUE_SECONDS_PER_POSITION
    strict: bool = __debug__

    def __post_init__(self):
        if self.concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        if self.rate_limit < 1:
            raise ValueError("rate_limit must be >= 1")
        if self.window_ms <= 0:
            raise ValueError("window_ms must be > 0")

    @classmethod
    def from_settings(cls, settings) -> 'QueueConfig':
        return cls(
            concurrency_limit=settings.queue_concurrency_limit,
            rate_limit=settings.queue_rate_limit,
            window_ms=settings.queue_window_ms,
            seconds_per_position=settings.queue_seconds_per_position,
        )


@dataclass
class QueueEntry:
    """A submitted task plus its FIFO sequence number and result channel"""
    sequence: int
    task: Task
    future: asyncio.Future
    runner: Optional[asyncio.Task] = None


@dataclass
class SubmitResult:
    """What submit() hands back: the eventual result and the advisory position"""
    result: asyncio.Future
    position: int


@dataclass
class QueueStatus:
    """Snapshot for monitoring / UI"""
    pending: int
    active: int
    count_in_window: int
    is_paused: bool
    estimated_wait_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)


class AdmissionQueue:
    """
    FIFO scheduler with a concurrency gate and a fixed-window rate limit.

    Usage:
        queue = AdmissionQueue(QueueConfig())
        submitted = queue.submit(lambda: provider.generate(request))
        print(f"You are #{submitted.position} in line")
        result = await submitted.result
    """

    def __init__(
        self,
        config: Optional[QueueConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Admission policy (defaults from config.constants)
            clock: Monotonic time source in seconds, used for the rate window
        """
        self.config = config or QueueConfig()
        self._clock = clock
        self._entries: Deque[QueueEntry] = deque()
        self._sequence = itertools.count(1)
        self._active = 0
        self._window_start: Optional[float] = None
        self._count_in_window = 0
        self._last_started = 0
        self._paused = False
        self._wakeup: Optional[asyncio.TimerHandle] = None

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    @property
    def pending_count(self) -> int:
        # cancelled entries stay in the deque until their done-callback runs
        return sum(1 for entry in self._entries if not entry.future.done())

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def count_in_window(self) -> int:
        return self._count_in_window

    @property
    def is_paused(self) -> bool:
        return self._paused

    def estimate_wait_seconds(self, position: int) -> float:
        """Rough wait shown next to a queue position."""
        return max(position, 0) * self.config.seconds_per_position

    def status(self) -> QueueStatus:
        waiting_position = self.pending_count + self.active_count
        return QueueStatus(
            pending=self.pending_count,
            active=self.active_count,
            count_in_window=self._count_in_window,
            is_paused=self._paused,
            estimated_wait_seconds=self.estimate_wait_seconds(waiting_position),
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, task: Task, on_position: Optional[PositionCallback] = None) -> SubmitResult:
        """
        Queue ``task`` and return immediately.

        The position (pending + active + 1, 1-based) is best-effort: it is
        exact at the moment of submission and only advisory afterwards.
        Entries whose result was already cancelled are not counted.
        Task failures are delivered through ``result``; submit never rejects.
        Cancelling ``result`` withdraws a waiting entry or cancels a running one.
        """
        loop = asyncio.get_running_loop()
        position = self.pending_count + self.active_count + 1
        entry = QueueEntry(
            sequence=next(self._sequence),
            task=task,
            future=loop.create_future(),
        )
        entry.future.add_done_callback(lambda fut, e=entry: self._on_future_done(e))
        self._entries.append(entry)

        logger.debug(f"[Queue] Submitted #{entry.sequence} at position {position}")

        if on_position is not None:
            on_position(position)

        self.pump()
        return SubmitResult(result=entry.future, position=position)

    def pause(self):
        """Stop admitting new tasks; running tasks finish normally."""
        self._paused = True

    def resume(self):
        self._paused = False
        self.pump()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def pump(self):
        """
        Admit as many head entries as the gates allow.

        Idempotent and safe to call redundantly; it never awaits.
        """
        if self._paused:
            return

        while self._entries and self._active < self.config.concurrency_limit:
            self._roll_window()
            if self._count_in_window >= self.config.rate_limit:
                self._schedule_wakeup()
                return

            entry = self._entries.popleft()
            if entry.future.done():
                # cancelled, removal callback not run yet
                continue
            self._active += 1
            self._count_in_window += 1
            self._check_invariants(entry)

            logger.debug(
                f"[Queue] Processing request #{entry.sequence}. "
                f"Active: {self._active}, Waiting: {self.pending_count}"
            )
            entry.runner = asyncio.get_running_loop().create_task(self._run(entry))

    def _roll_window(self):
        now = self._clock()
        window_seconds = self.config.window_ms / 1000.0
        if self._window_start is None or now - self._window_start >= window_seconds:
            self._window_start = now
            self._count_in_window = 0

    def _schedule_wakeup(self):
        if self._wakeup is not None:
            return
        window_seconds = self.config.window_ms / 1000.0
        remaining = max(self._window_start + window_seconds - self._clock(), 0.0)
        logger.info(
            f"[Queue] Rate limit of {self.config.rate_limit} starts reached, "
            f"{self.pending_count} waiting, next window in {remaining:.1f}s"
        )
        self._wakeup = asyncio.get_running_loop().call_later(remaining, self._on_wakeup)

    def _on_wakeup(self):
        self._wakeup = None
        self.pump()

    async def _run(self, entry: QueueEntry):
        try:
            result = await entry.task()
        except asyncio.CancelledError:
            if not entry.future.done():
                entry.future.cancel()
            raise
        except Exception as e:
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)
        finally:
            self._active -= 1
            logger.debug(f"[Queue] Task #{entry.sequence} completed. Waiting: {self.pending_count}")
            self.pump()

    def _on_future_done(self, entry: QueueEntry):
        if not entry.future.cancelled():
            return
        if entry.runner is None:
            try:
                self._entries.remove(entry)
            except ValueError:
                return
            logger.info(f"[Queue] Task #{entry.sequence} withdrawn before start")
        elif not entry.runner.done():
            entry.runner.cancel()

    def _check_invariants(self, entry: QueueEntry):
        problems = []
        if self._active > self.config.concurrency_limit:
            problems.append(f"active {self._active} > limit {self.config.concurrency_limit}")
        if self._count_in_window > self.config.rate_limit:
            problems.append(f"window count {self._count_in_window} > limit {self.config.rate_limit}")
        if entry.sequence <= self._last_started:
            problems.append(f"#{entry.sequence} started after #{self._last_started}")
        self._last_started = entry.sequence

        if problems:
            message = "Admission invariant violated: " + "; ".join(problems)
            if self.config.strict:
                raise QueueLogicError(message)
            logger.error(message)
