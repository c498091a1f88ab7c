"""Local admission control in front of the AI backend.

Every AI call in the pipeline goes through a :class:`RateLimiter`. Queued work
is dispatched strictly in enqueue order by a single drain task, one call at a
time, while a ledger of recent calls keeps the rolling window under both a
token budget (``max_tpm``) and a request budget (``max_rpm``).

Token counts are estimates (see :func:`estimate_tokens`), so the limiter is
advisory: it keeps local usage inside the configured budget but cannot promise
the provider will never throttle.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

from repopost.config.models import RateLimitConfig
from repopost.llm.base import LLMProvider
from repopost.llm.models import LLMResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ESTIMATED_TOKENS = 5_000


def estimate_tokens(text: str) -> int:
    """Rough token count for *text*: about four characters per token."""
    return math.ceil(len(text) / 4)


@dataclass(frozen=True)
class TokenUsageRecord:
    """One completed call in the rolling window."""

    timestamp: float
    tokens: int


@dataclass
class _QueueItem:
    execute: Callable[[], Awaitable[Any]]
    future: asyncio.Future
    estimated_tokens: int


class LimiterStats(BaseModel):
    """Snapshot of limiter usage for observability."""

    queue_length: int
    tokens_in_window: int
    requests_in_window: int
    max_tpm: int
    max_rpm: int


class RateLimiter:
    """FIFO admission queue with a sliding token/request window.

    Args:
        max_tpm: Token budget per window.
        max_rpm: Request budget per window.
        min_delay_ms: Minimum spacing between two dispatched calls.
        window_ms: Length of the sliding window.
        clock: Monotonic time source in seconds.
        sleep: Awaitable sleep taking seconds.
    """

    def __init__(
        self,
        max_tpm: int = 15_000,
        max_rpm: int = 15,
        min_delay_ms: int = 1_000,
        window_ms: int = 60_000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_tpm <= 0 or max_rpm <= 0 or window_ms <= 0:
            raise ValueError("max_tpm, max_rpm and window_ms must be positive")
        if min_delay_ms < 0:
            raise ValueError("min_delay_ms cannot be negative")
        self.max_tpm = max_tpm
        self.max_rpm = max_rpm
        self._min_delay = min_delay_ms / 1000
        self._window = window_ms / 1000
        self._clock = clock
        self._sleep = sleep

        self._queue: deque[_QueueItem] = deque()
        self._ledger: deque[TokenUsageRecord] = deque()
        self._last_dispatch: float | None = None
        self._draining = False
        self._drain_task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: RateLimitConfig, **kwargs: Any) -> RateLimiter:
        return cls(
            max_tpm=config.max_tpm,
            max_rpm=config.max_rpm,
            min_delay_ms=config.min_delay_ms,
            window_ms=config.window_ms,
            **kwargs,
        )

    async def enqueue(
        self,
        execute: Callable[[], Awaitable[T]],
        estimated_tokens: int = DEFAULT_ESTIMATED_TOKENS,
    ) -> T:
        """Queue *execute* and return its result once it has been admitted and run.

        *execute* is a zero-argument callable producing an awaitable, so no work
        starts before admission. Its exception, if any, is re-raised here.
        """
        if estimated_tokens < 0:
            raise ValueError("estimated_tokens cannot be negative")
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._queue.append(_QueueItem(execute, future, estimated_tokens))
        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())
        return await future

    def stats(self) -> LimiterStats:
        self._prune()
        return LimiterStats(
            queue_length=len(self._queue),
            tokens_in_window=self._tokens_in_window(),
            requests_in_window=len(self._ledger),
            max_tpm=self.max_tpm,
            max_rpm=self.max_rpm,
        )

    async def _drain(self) -> None:
        try:
            while self._queue:
                item = self._queue[0]
                if item.future.cancelled():
                    self._queue.popleft()
                    continue

                wait = self._admission_wait(item.estimated_tokens)
                if wait > 0:
                    logger.info(
                        "Rate limiter waiting %.0f ms (%d tokens, %d requests in window)",
                        wait * 1000,
                        self._tokens_in_window(),
                        len(self._ledger),
                    )
                    await self._sleep(wait)
                    continue

                if self._last_dispatch is not None:
                    gap = self._min_delay - (self._clock() - self._last_dispatch)
                    if gap > 0:
                        await self._sleep(gap)

                self._queue.popleft()
                self._last_dispatch = self._clock()
                logger.debug(
                    "Dispatching call (~%d tokens, %d queued)",
                    item.estimated_tokens,
                    len(self._queue),
                )
                try:
                    result = await item.execute()
                except Exception as e:
                    self._record(item.estimated_tokens)
                    if not item.future.done():
                        item.future.set_exception(e)
                else:
                    self._record(item.estimated_tokens)
                    if not item.future.done():
                        item.future.set_result(result)
        finally:
            self._draining = False

    def _admission_wait(self, tokens: int) -> float:
        """Seconds to wait before *tokens* can be admitted; 0 means admit now."""
        self._prune()
        if not self._ledger:
            if tokens > self.max_tpm:
                logger.warning(
                    "Single request of ~%d tokens exceeds max_tpm=%d; admitting into empty window",
                    tokens,
                    self.max_tpm,
                )
            return 0.0
        fits_tokens = self._tokens_in_window() + tokens <= self.max_tpm
        fits_requests = len(self._ledger) < self.max_rpm
        if fits_tokens and fits_requests:
            return 0.0
        oldest = self._ledger[0].timestamp
        return max(self._window - (self._clock() - oldest), self._min_delay)

    def _record(self, tokens: int) -> None:
        self._ledger.append(TokenUsageRecord(timestamp=self._clock(), tokens=tokens))

    def _prune(self) -> None:
        cutoff = self._clock() - self._window
        while self._ledger and self._ledger[0].timestamp <= cutoff:
            self._ledger.popleft()

    def _tokens_in_window(self) -> int:
        return sum(r.tokens for r in self._ledger)


class ThrottledLLM:
    """An :class:`LLMProvider` whose calls are admitted through a :class:`RateLimiter`."""

    def __init__(self, provider: LLMProvider, limiter: RateLimiter) -> None:
        self.provider = provider
        self.limiter = limiter

    async def generate(
        self, system: str, user: str, max_tokens: int | None = None
    ) -> LLMResponse:
        tokens = estimate_tokens(system + user)
        return await self.limiter.enqueue(
            lambda: self.provider.generate(system=system, user=user, max_tokens=max_tokens),
            tokens,
        )
