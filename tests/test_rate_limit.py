"""Rate limiter tests — state machine, eviction, concurrency, middleware."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from mawaqit.common.exceptions import register_exception_handlers
from mawaqit.common.rate_limit import EVICTION_BATCH, RateLimiter, RateLimitMiddleware


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _app_with_limiter(limiter: RateLimiter, key_func=None) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    kwargs = {"limiter": limiter, "skip_paths": ["/health"]}
    if key_func is not None:
        kwargs["key_func"] = key_func
    app.add_middleware(RateLimitMiddleware, **kwargs)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


# ═════════════════════════════════════════════════════════════════════
# 1. STATE MACHINE
# ═════════════════════════════════════════════════════════════════════


class TestAdmission:
    """Tests for burst, lazy reset and sliding window start."""

    def test_burst_then_deny(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=5, window=60, clock=clock)

        assert [limiter.admit("1.2.3.4") for _ in range(5)] == [True] * 5
        assert limiter.admit("1.2.3.4") is False
        assert limiter.visitor("1.2.3.4").request_count == 5

    def test_reset_after_window(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=5, window=60, clock=clock)
        for _ in range(6):
            limiter.admit("1.2.3.4")

        clock.advance(61)
        assert limiter.admit("1.2.3.4") is True
        assert limiter.visitor("1.2.3.4").request_count == 1

    def test_denial_does_not_extend_window(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=1, window=60, clock=clock)
        limiter.admit("a")
        start = limiter.visitor("a").window_start

        clock.advance(30)
        assert limiter.admit("a") is False
        assert limiter.visitor("a").window_start == start

        clock.advance(31)
        assert limiter.admit("a") is True

    def test_window_slides_with_each_admitted_request(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=3, window=60, clock=clock)
        limiter.admit("a")
        clock.advance(50)
        limiter.admit("a")
        clock.advance(50)
        # 100s since the first request but only 50s since the last admitted one
        limiter.admit("a")
        assert limiter.admit("a") is False

    def test_identifiers_are_independent(self):
        limiter = RateLimiter(burst=1, window=60, clock=FakeClock())
        assert limiter.admit("a") is True
        assert limiter.admit("b") is True
        assert limiter.admit("a") is False

    def test_retry_after(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=1, window=60, clock=clock)
        limiter.admit("a")
        clock.advance(20.5)
        assert limiter.retry_after("a") == 40
        assert limiter.retry_after("unknown") == 1

    def test_visitor_is_a_snapshot(self):
        limiter = RateLimiter(burst=5, window=60, clock=FakeClock())
        limiter.admit("a")
        snapshot = limiter.visitor("a")
        snapshot.request_count = 99
        assert limiter.visitor("a").request_count == 1

    @pytest.mark.parametrize("burst, window", [(0, 60), (5, 0), (5, -1)])
    def test_rejects_bad_configuration(self, burst, window):
        with pytest.raises(ValueError):
            RateLimiter(burst=burst, window=window)


# ═════════════════════════════════════════════════════════════════════
# 2. EVICTION
# ═════════════════════════════════════════════════════════════════════


class TestEviction:
    """Idle visitors are dropped once older than the TTL."""

    def test_idle_visitors_evicted(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=5, window=60, clock=clock)
        for i in range(10):
            limiter.admit(f"10.0.0.{i}")
        assert len(limiter) == 10

        clock.advance(61)
        limiter.admit("fresh")
        assert len(limiter) == 1
        assert limiter.visitor("10.0.0.1") is None

    def test_active_visitors_survive(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=5, window=60, clock=clock)
        limiter.admit("old")
        clock.advance(40)
        limiter.admit("recent")
        clock.advance(30)
        limiter.admit("trigger")

        assert limiter.visitor("old") is None
        assert limiter.visitor("recent") is not None

    def test_eviction_is_bounded_per_call(self):
        clock = FakeClock()
        limiter = RateLimiter(burst=5, window=60, clock=clock)
        for i in range(EVICTION_BATCH * 2):
            limiter.admit(f"visitor-{i}")

        clock.advance(61)
        limiter.admit("trigger")
        assert len(limiter) == EVICTION_BATCH + 1

    def test_ttl_never_shorter_than_window(self):
        limiter = RateLimiter(burst=5, window=60, ttl=10)
        assert limiter.ttl == 60

    def test_reset_clears_everything(self):
        limiter = RateLimiter(burst=5, window=60, shards=4)
        for i in range(20):
            limiter.admit(str(i))
        limiter.reset()
        assert len(limiter) == 0


# ═════════════════════════════════════════════════════════════════════
# 3. CONCURRENCY
# ═════════════════════════════════════════════════════════════════════


class TestConcurrency:
    """Concurrent admits for one identifier admit exactly ``burst``."""

    @pytest.mark.parametrize("shards", [1, 8])
    def test_exactly_burst_admitted(self, shards):
        burst = 50
        limiter = RateLimiter(burst=burst, window=60, shards=shards)
        barrier = threading.Barrier(16)

        def _hammer() -> int:
            barrier.wait()
            return sum(limiter.admit("shared") for _ in range(25))

        with ThreadPoolExecutor(max_workers=16) as pool:
            admitted = sum(pool.map(lambda _: _hammer(), range(16)))

        assert admitted == burst
        assert limiter.visitor("shared").request_count == burst

    def test_many_identifiers_across_shards(self):
        limiter = RateLimiter(burst=3, window=60, shards=8)

        def _client(i: int) -> int:
            return sum(limiter.admit(f"client-{i}") for _ in range(5))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(_client, range(64)))

        assert results == [3] * 64
        assert len(limiter) == 64

    def test_clock_is_read_under_the_shard_lock(self):
        held: list[bool] = []
        limiter = RateLimiter(burst=2, window=60)

        def _clock() -> float:
            held.append(limiter._shards[0].lock.locked())
            return 1000.0

        limiter._clock = _clock
        limiter.admit("a")
        limiter.admit("a")
        limiter.admit("a")
        limiter.retry_after("a")
        assert held and all(held)

    def test_shard_stays_ordered_by_window_start(self):
        limiter = RateLimiter(burst=1000, window=60, ttl=3600)
        barrier = threading.Barrier(8)

        def _client(i: int) -> None:
            barrier.wait()
            for n in range(200):
                limiter.admit(f"client-{i}-{n % 5}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(_client, range(8)))

        starts = [v.window_start for v in limiter._shards[0].visitors.values()]
        assert starts == sorted(starts)


# ═════════════════════════════════════════════════════════════════════
# 4. MIDDLEWARE
# ═════════════════════════════════════════════════════════════════════


class TestRateLimitMiddleware:
    """HTTP-level behaviour of the limiter."""

    async def test_429_after_burst(self):
        limiter = RateLimiter(burst=2, window=60)
        app = _app_with_limiter(limiter)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            assert (await ac.get("/ping")).status_code == 200
            assert (await ac.get("/ping")).status_code == 200
            resp = await ac.get("/ping")

        assert resp.status_code == 429
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert int(resp.headers["Retry-After"]) >= 1
        assert resp.json()["status"] == 429

    async def test_health_is_not_limited(self):
        limiter = RateLimiter(burst=1, window=60)
        app = _app_with_limiter(limiter)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            statuses = [(await ac.get("/health")).status_code for _ in range(5)]
        assert statuses == [200] * 5
        assert len(limiter) == 0

    async def test_403_without_identifier(self):
        limiter = RateLimiter(burst=5, window=60)
        app = _app_with_limiter(limiter, key_func=lambda request: None)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/ping")
        assert resp.status_code == 403
        assert resp.json()["type"].endswith("/forbidden")

    async def test_app_exposes_limiter(self, app):
        assert isinstance(app.state.rate_limiter, RateLimiter)
