"""Bounded retry with exponential backoff."""

import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .config import BACKOFF_INITIAL_DELAY, BACKOFF_MAX_DELAY, BACKOFF_MULTIPLIER, FETCH_ATTEMPTS

T = TypeVar("T")


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delay schedule: min(initial * multiplier**attempt, max), optionally jittered."""

    initial_delay: float = BACKOFF_INITIAL_DELAY
    multiplier: float = BACKOFF_MULTIPLIER
    max_delay: float = BACKOFF_MAX_DELAY
    jitter: bool = True

    def delay(self, attempt: int) -> float:
        delay = min(self.initial_delay * (self.multiplier ** attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


NO_BACKOFF = ExponentialBackoff(initial_delay=0.0, jitter=False)


def retry(
    operation: Callable[[], T],
    attempts: int = FETCH_ATTEMPTS,
    backoff: ExponentialBackoff = ExponentialBackoff(),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation`` up to ``attempts`` times.

    Waits ``backoff.delay(n)`` between attempts, never after the last one.
    When every attempt fails the last exception propagates unchanged.
    ``on_retry`` receives the 1-based number of the failed attempt and its
    error before each wait.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(attempts):
        try:
            return operation()
        except Exception as e:
            if attempt == attempts - 1:
                raise
            if on_retry:
                on_retry(attempt + 1, e)
            sleep(backoff.delay(attempt))

    raise AssertionError("unreachable")
