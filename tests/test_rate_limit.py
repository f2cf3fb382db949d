from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.main import create_app
from app.middleware.rate_limit import FixedWindowRateLimiter


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestFixedWindowRateLimiter:
    def test_allows_up_to_the_limit(self):
        limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60, clock=ManualClock())

        decisions = [limiter.hit("1.2.3.4") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]

    def test_keys_are_counted_separately(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=ManualClock())

        assert limiter.hit("a").allowed
        assert limiter.hit("b").allowed
        assert not limiter.hit("a").allowed

    def test_counters_reset_when_window_expires(self):
        clock = ManualClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")
        assert not limiter.hit("a").allowed

        clock.now = 60.0

        assert limiter.hit("a").allowed

    def test_window_is_process_wide(self):
        clock = ManualClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")

        clock.now = 59.0
        decision = limiter.hit("b")

        assert decision.allowed
        assert decision.reset_in == 1.0

    def test_skipped_windows_are_accounted_for(self):
        clock = ManualClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)

        clock.now = 250.0
        decision = limiter.hit("a")

        assert decision.reset_in == 50.0


class TestRateLimitMiddleware:
    def test_rejects_requests_over_the_limit(self, store, relay):
        limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=900, clock=ManualClock())
        app = create_app(settings=Settings(groq_api_key="k"), session_store=store, relay=relay, rate_limiter=limiter)

        with TestClient(app) as client:
            responses = [client.get("/api/health") for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 429]
        assert responses[0].headers["x-ratelimit-limit"] == "2"
        assert responses[0].headers["x-ratelimit-remaining"] == "1"
        assert responses[2].json() == {"error": "Too many requests, please try again later."}
        assert responses[2].headers["retry-after"] == "900"
