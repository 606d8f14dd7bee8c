"""
Admission control for the ingestion endpoint.

- Body size ceiling, checked before the body is parsed
- Per-caller rolling-window rate limiting
"""

import asyncio
import math
import time
from collections import deque
from typing import Callable, Deque, Dict

import structlog
from fastapi import Request

from .exceptions import PayloadTooLargeError, RateLimitError

logger = structlog.get_logger(__name__)

# Prune idle caller windows once this many callers are tracked
MAX_TRACKED_CALLERS = 10_000


class SlidingWindow:
    """
    Rolling-window request log for a single caller.

    Allows ``limit`` hits within any ``window_seconds`` span.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.hits: Deque[float] = deque()
        self.lock = asyncio.Lock()
        self._clock = clock

    def _trim(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self.hits and self.hits[0] <= cutoff:
            self.hits.popleft()

    async def hit(self) -> bool:
        """
        Try to record a request.

        Returns True if under the limit, False otherwise. Rejected requests
        are not recorded.
        """
        async with self.lock:
            now = self._clock()
            self._trim(now)

            if len(self.hits) < self.limit:
                self.hits.append(now)
                return True

            return False

    @property
    def remaining(self) -> int:
        self._trim(self._clock())
        return max(0, self.limit - len(self.hits))

    def get_retry_after(self) -> int:
        """Seconds until the oldest counted request leaves the window."""
        now = self._clock()
        self._trim(now)
        if not self.hits:
            return 1
        return max(1, math.ceil(self.hits[0] + self.window_seconds - now))

    def is_idle(self) -> bool:
        self._trim(self._clock())
        return not self.hits


class RateLimiter:
    """
    Per-caller rate limiter using rolling windows.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.windows: Dict[str, SlidingWindow] = {}
        self._clock = clock

    async def check_rate_limit(self, caller: str) -> SlidingWindow:
        """
        Check rate limit for a caller.

        Raises RateLimitError if limit exceeded, otherwise returns the
        caller's window for rate-limit headers.
        """
        if caller not in self.windows:
            if len(self.windows) >= MAX_TRACKED_CALLERS:
                self._prune()
            self.windows[caller] = SlidingWindow(
                limit=self.limit,
                window_seconds=self.window_seconds,
                clock=self._clock,
            )

        window = self.windows[caller]

        if not await window.hit():
            retry_after = window.get_retry_after()
            logger.warning(
                "Rate limit exceeded",
                caller=caller,
                retry_after=retry_after,
                limit=self.limit,
            )
            raise RateLimitError(retry_after=retry_after)

        logger.debug(
            "Rate limit check passed",
            caller=caller,
            remaining=window.remaining,
        )
        return window

    def _prune(self) -> None:
        idle = [caller for caller, window in self.windows.items() if window.is_idle()]
        for caller in idle:
            del self.windows[caller]
        logger.debug("Pruned idle rate limit windows", pruned=len(idle), tracked=len(self.windows))


def client_key(request: Request) -> str:
    """Identify the caller by network origin."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def read_limited_body(request: Request, limit_bytes: int) -> bytes:
    """
    Read the request body, rejecting it once it exceeds ``limit_bytes``.

    A declared Content-Length over the limit is rejected without reading.
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit_bytes:
        raise PayloadTooLargeError(limit_bytes)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit_bytes:
            raise PayloadTooLargeError(limit_bytes)
    return bytes(body)
