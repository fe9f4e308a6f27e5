"""Concurrency cap and timeout for expensive template transforms."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

from .errors import Throttled, TransformTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TRANSFORMS = 5
TRANSFORM_TIMEOUT_SECONDS = 3.0


class TransformThrottle:
    """Tracks in-flight transforms across all requests of one application."""

    def __init__(
        self, max_in_flight: int = MAX_TRANSFORMS, timeout: float = TRANSFORM_TIMEOUT_SECONDS
    ) -> None:
        self.max_in_flight = max_in_flight
        self.timeout = timeout
        self._active = 0
        self._lock = asyncio.Lock()

    @property
    def active(self) -> int:
        return self._active

    async def _acquire(self) -> bool:
        async with self._lock:
            if self._active >= self.max_in_flight:
                return False
            self._active += 1
            return True

    async def _release(self) -> None:
        async with self._lock:
            self._active -= 1

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run ``func`` in a worker thread, refusing or abandoning it at the limits."""

        if not await self._acquire():
            raise Throttled()
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Transform abandoned after %.1fs", self.timeout)
            raise TransformTimeout() from exc
        finally:
            await self._release()
