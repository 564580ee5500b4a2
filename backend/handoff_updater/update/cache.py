"""
Memoization with expiry for async loaders

A single cached value plus its expiry time. Refreshes are serialized by an
asyncio lock: callers arriving while a refresh is in flight wait for it and
get its result instead of starting another load. A failed load leaves the
cell empty and raises to every caller that triggered it.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class ExpiringCache(Generic[T]):
    """
    Single-flight cache cell

    Args:
        loader: Coroutine function producing a fresh value
        ttl_seconds: How long a loaded value stays valid
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._value: T | None = None
        self._expires_at: float | None = None

    def _is_fresh(self) -> bool:
        return self._expires_at is not None and self._clock() < self._expires_at

    async def get(self) -> T:
        if self._is_fresh():
            return self._value

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock
            if self._is_fresh():
                return self._value

            self._expires_at = None
            self._value = None
            value = await self._loader()
            self._value = value
            self._expires_at = self._clock() + self._ttl_seconds
            return value

    def invalidate(self) -> None:
        self._value = None
        self._expires_at = None
