"""In-memory per-client burst limiter and its ASGI middleware.

Each client identifier (the remote address by default) gets a ``Visitor``
record holding a request count and the time of its last admitted request.
A visitor may make ``burst`` requests; the count resets lazily once
``window`` seconds pass without an admitted request.

Usage in the app factory:

    limiter = RateLimiter(burst=100, window=60)
    app.state.rate_limiter = limiter
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
"""

from __future__ import annotations

import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable, Iterable, Optional

from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mawaqit.common.exceptions import (
    ForbiddenException,
    RateLimitedException,
    problem_response,
)

logger = logging.getLogger(__name__)

# Maximum idle visitors dropped per admit() call.
EVICTION_BATCH = 64


@dataclass
class Visitor:
    identifier: str
    request_count: int
    window_start: float


class _Shard:
    """Visitors ordered by ``window_start``, oldest first."""

    __slots__ = ("lock", "visitors")

    def __init__(self) -> None:
        self.lock = Lock()
        self.visitors: OrderedDict[str, Visitor] = OrderedDict()


class RateLimiter:
    """Thread-safe burst counter keyed by client identifier.

    Parameters:
        burst: Requests admitted per identifier before denial.
        window: Idle seconds after which an identifier's count resets.
        ttl: Idle seconds after which a visitor record is dropped
            (never shorter than *window*; defaults to it).
        shards: Number of independently locked partitions.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        burst: int,
        window: float,
        *,
        ttl: Optional[float] = None,
        shards: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if burst < 1:
            raise ValueError("burst must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.burst = burst
        self.window = window
        self.ttl = max(ttl if ttl is not None else window, window)
        self._clock = clock
        self._shards = tuple(_Shard() for _ in range(max(shards, 1)))

    def _shard(self, identifier: str) -> _Shard:
        return self._shards[hash(identifier) % len(self._shards)]

    # ── Admission ───────────────────────────────────────────────────

    def admit(self, identifier: str) -> bool:
        """Record one request from *identifier*; return whether it may proceed."""
        shard = self._shard(identifier)
        with shard.lock:
            # Read under the lock so move_to_end keeps the shard ordered by window_start.
            now = self._clock()
            self._evict_idle(shard, now)

            visitor = shard.visitors.get(identifier)
            if visitor is None:
                visitor = Visitor(identifier, request_count=0, window_start=now)
                shard.visitors[identifier] = visitor

            if now - visitor.window_start > self.window:
                visitor.request_count = 0
                visitor.window_start = now
                shard.visitors.move_to_end(identifier)

            if visitor.request_count >= self.burst:
                return False

            visitor.request_count += 1
            visitor.window_start = now
            shard.visitors.move_to_end(identifier)
            return True

    def _evict_idle(self, shard: _Shard, now: float) -> None:
        # Caller holds shard.lock.
        for _ in range(EVICTION_BATCH):
            if not shard.visitors:
                return
            identifier, oldest = next(iter(shard.visitors.items()))
            if now - oldest.window_start <= self.ttl:
                return
            del shard.visitors[identifier]

    # ── Introspection ───────────────────────────────────────────────

    def retry_after(self, identifier: str) -> int:
        """Whole seconds until *identifier*'s count resets (at least 1)."""
        shard = self._shard(identifier)
        with shard.lock:
            now = self._clock()
            visitor = shard.visitors.get(identifier)
            if visitor is None:
                return 1
            remaining = self.window - (now - visitor.window_start)
        return max(1, math.ceil(remaining))

    def visitor(self, identifier: str) -> Optional[Visitor]:
        """Snapshot of *identifier*'s record, or ``None`` if unknown."""
        shard = self._shard(identifier)
        with shard.lock:
            visitor = shard.visitors.get(identifier)
            return replace(visitor) if visitor is not None else None

    def reset(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.visitors.clear()

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.visitors)
        return total


# ── Middleware ──────────────────────────────────────────────────────

class RateLimitMiddleware(BaseHTTPMiddleware):
    """Admit or reject every request before it reaches a router.

    Denials render as problem+json: 429 with ``Retry-After`` when the burst
    is spent, 403 when no client identifier can be derived.
    """

    def __init__(  # type: ignore[override]
        self,
        app,
        *,
        limiter: RateLimiter,
        key_func: Callable[[Request], Optional[str]] = get_remote_address,
        skip_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.key_func = key_func
        self.skip_paths = frozenset(skip_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        identifier = self.key_func(request)
        if not identifier:
            logger.warning("Rejected %s %s: no client identifier", request.method, path)
            return problem_response(
                ForbiddenException(detail="Could not identify the client."), path,
            )

        if not self.limiter.admit(identifier):
            retry_after = self.limiter.retry_after(identifier)
            logger.warning(
                "Rate limit exceeded for %s on %s %s (retry in %ds)",
                identifier, request.method, path, retry_after,
            )
            return problem_response(RateLimitedException(retry_after), path)

        return await call_next(request)
