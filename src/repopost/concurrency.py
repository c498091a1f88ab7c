"""Bounded-concurrency task runner shared by the downloader and screenshot batches."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one task: either ``value`` or ``error`` is meaningful."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(
    tasks: Sequence[Callable[[], Awaitable[T]]], limit: int
) -> list[Outcome[T]]:
    """Run *tasks* at most *limit* at a time and collect every outcome.

    Tasks run in consecutive batches of *limit*; a batch settles completely
    before the next one starts. Outcomes are returned in input order no matter
    which task finished first. A failing task never aborts its batch.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    outcomes: list[Outcome[T]] = []
    for start in range(0, len(tasks), limit):
        batch = tasks[start : start + limit]
        results = await asyncio.gather(*(task() for task in batch), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                outcomes.append(Outcome(error=result))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(Outcome(value=result))
    return outcomes
