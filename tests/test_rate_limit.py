"""Tests for the fixed-window rate limiter and its middleware."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from chromagent.app.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    RateLimitResult,
    get_client_key,
)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter(limit=10, window_seconds=60, sweep_interval_seconds=300, clock=clock)


class TestFixedWindowRateLimiter:

    def test_first_request_opens_window(self, limiter, clock):
        result = limiter.check("1.2.3.4")
        assert result.allowed is True
        assert result.remaining == 9
        assert result.limit == 10
        assert result.reset_at == clock.now + 60

    def test_remaining_counts_down(self, limiter):
        remaining = [limiter.check("1.2.3.4").remaining for _ in range(10)]
        assert remaining == [9, 8, 7, 6, 5, 4, 3, 2, 1, 0]

    def test_blocks_after_ceiling(self, limiter):
        for _ in range(10):
            assert limiter.check("1.2.3.4").allowed is True

        result = limiter.check("1.2.3.4")
        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after == 60

    def test_rejection_keeps_reset_at(self, limiter, clock):
        first = limiter.check("1.2.3.4")
        for _ in range(9):
            limiter.check("1.2.3.4")
        clock.advance(30)

        rejected = limiter.check("1.2.3.4")
        assert rejected.allowed is False
        assert rejected.reset_at == first.reset_at
        assert rejected.retry_after == 30

    def test_window_expiry_resets_count(self, limiter, clock):
        """Scenario: 10 admitted, 11th rejected, 61s later admitted again."""
        for _ in range(10):
            assert limiter.check("1.2.3.4").allowed is True
        assert limiter.check("1.2.3.4").allowed is False

        clock.advance(61)
        result = limiter.check("1.2.3.4")
        assert result.allowed is True
        assert result.remaining == 9
        assert result.reset_at == clock.now + 60

    def test_different_keys_independent(self, limiter):
        for _ in range(11):
            limiter.check("key-a")
        assert limiter.check("key-a").allowed is False

        result = limiter.check("key-b")
        assert result.allowed is True
        assert result.remaining == 9

    def test_sweep_removes_only_expired(self, limiter, clock):
        limiter.check("old")
        clock.advance(45)
        limiter.check("new")
        clock.advance(20)

        assert limiter.sweep() == 1
        assert "old" not in limiter
        assert "new" in limiter

    def test_sweep_is_idempotent(self, limiter, clock):
        for key in ("a", "b", "c"):
            limiter.check(key)
        clock.advance(61)

        assert limiter.sweep() == 3
        assert limiter.sweep() == 0
        assert len(limiter) == 0

    def test_sweep_runs_from_check_after_interval(self, limiter, clock):
        limiter.check("stale")
        clock.advance(120)
        limiter.check("other")
        # Expired but sweep interval not reached yet
        assert "stale" in limiter

        clock.advance(200)
        limiter.check("other")
        assert "stale" not in limiter

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(limit=0)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(window_seconds=0)


class TestRateLimitResult:

    def test_reset_time_is_whole_seconds(self):
        result = RateLimitResult(allowed=True, limit=10, remaining=9, reset_at=1234567890.7)
        assert result.reset_time == 1234567890
        assert result.reset_at_iso.startswith("2009-02-13T23:31:30")


def _app(limiter: FixedWindowRateLimiter) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter, path_prefix="/api/chat")

    @app.post("/api/chat")
    async def chat():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/whoami")
    async def whoami(request: Request):
        return {"key": get_client_key(request)}

    return app


class TestRateLimitMiddleware:

    def test_admitted_response_has_headers(self, clock):
        limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
        client = TestClient(_app(limiter))

        resp = client.post("/api/chat", headers={"X-Forwarded-For": "1.2.3.4"})
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Limit"] == "2"
        assert resp.headers["X-RateLimit-Remaining"] == "1"
        assert resp.headers["X-RateLimit-Reset"] == str(int(clock.now + 60))

    def test_rejects_with_429(self, clock):
        limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
        client = TestClient(_app(limiter))
        headers = {"X-Forwarded-For": "1.2.3.4"}

        client.post("/api/chat", headers=headers)
        client.post("/api/chat", headers=headers)
        resp = client.post("/api/chat", headers=headers)

        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "60"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        body = resp.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["retry_after"] == 60
        assert "reset_at" in body

    def test_other_paths_not_limited(self, clock):
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
        client = TestClient(_app(limiter))

        for _ in range(3):
            assert client.get("/health").status_code == 200
        assert len(limiter) == 0

    def test_forwarded_for_uses_first_hop(self, clock):
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
        client = TestClient(_app(limiter))

        client.post("/api/chat", headers={"X-Forwarded-For": "9.9.9.9, 10.0.0.1"})
        assert "9.9.9.9" in limiter
        # Same first hop behind a different proxy is the same client
        resp = client.post("/api/chat", headers={"X-Forwarded-For": "9.9.9.9, 10.0.0.2"})
        assert resp.status_code == 429

    def test_client_key_fallbacks(self, clock):
        client = TestClient(_app(FixedWindowRateLimiter(clock=clock)))

        assert client.get("/whoami", headers={"X-Real-IP": "5.5.5.5"}).json()["key"] == "5.5.5.5"
        # TestClient connects from "testclient"
        assert client.get("/whoami").json()["key"] == "testclient"

    def test_empty_injected_limiter_is_kept(self, clock):
        limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
        assert len(limiter) == 0

        middleware = RateLimitMiddleware(FastAPI(), limiter=limiter)
        assert middleware.limiter is limiter

    def test_default_limiter_when_none_given(self):
        middleware = RateLimitMiddleware(FastAPI())
        assert isinstance(middleware.limiter, FixedWindowRateLimiter)
        assert middleware.limiter.limit == 10
