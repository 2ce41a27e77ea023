"""Sliding-window rate limiting keyed by client identifier."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable

from releasehook.utils.logging import get_logger

log = get_logger(__name__)


class RateLimiter:
    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._max_requests = max_requests
        self._clock = clock
        # identifier -> ascending request timestamps inside the window
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def window_seconds(self) -> float:
        return self._window

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def is_allowed(self, identifier: str) -> bool:
        """Record a request for ``identifier`` if it is under the limit."""
        with self._lock:
            now = self._clock()
            window_start = now - self._window

            # Prune old entries
            requests = [t for t in self._requests.get(identifier, []) if t > window_start]

            if len(requests) >= self._max_requests:
                self._requests[identifier] = requests
                log.warning("rate_limit_exceeded", identifier=identifier)
                return False

            requests.append(now)
            self._requests[identifier] = requests
            return True

    def sweep(self) -> int:
        """Drop identifiers with no requests left in the window."""
        removed = 0
        with self._lock:
            window_start = self._clock() - self._window
            for identifier in list(self._requests):
                valid = [t for t in self._requests[identifier] if t > window_start]
                if valid:
                    self._requests[identifier] = valid
                else:
                    del self._requests[identifier]
                    removed += 1
        if removed:
            log.debug("rate_limit_swept", removed=removed)
        return removed

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "tracked_identifiers": len(self._requests),
                "total_requests": sum(len(r) for r in self._requests.values()),
            }

    # ------------------------------------------------------------------
    # Periodic sweep
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="rate-limit-sweep")

    async def stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            await asyncio.gather(self._sweep_task, return_exceptions=True)
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._window)
            self.sweep()
