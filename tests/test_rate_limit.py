"""Tests for the sliding-window limiter and the rate limit middleware."""

import unittest

from fastapi.testclient import TestClient

from tasktrack.core.rate_limit import SlidingWindowRateLimiter
from tests.helpers import make_app


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = SlidingWindowRateLimiter(2, 10, clock=self.clock)

    def test_allows_up_to_limit_then_rejects(self) -> None:
        first = self.limiter.hit("1.2.3.4")
        second = self.limiter.hit("1.2.3.4")
        self.assertTrue(first.allowed)
        self.assertEqual(first.remaining, 1)
        self.assertTrue(second.allowed)
        self.assertEqual(second.remaining, 0)

        self.clock.now = 4.0
        third = self.limiter.hit("1.2.3.4")
        self.assertFalse(third.allowed)
        self.assertEqual(third.retry_after, 6)

    def test_keys_are_independent(self) -> None:
        self.limiter.hit("a")
        self.limiter.hit("a")
        self.assertFalse(self.limiter.hit("a").allowed)
        self.assertTrue(self.limiter.hit("b").allowed)

    def test_window_slides(self) -> None:
        self.limiter.hit("a")
        self.clock.now = 5.0
        self.limiter.hit("a")
        self.clock.now = 10.0
        # the hit at t=0 has left the window, the one at t=5 has not
        decision = self.limiter.hit("a")
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 0)
        self.assertFalse(self.limiter.hit("a").allowed)

    def test_rejected_hits_are_not_recorded(self) -> None:
        self.limiter.hit("a")
        self.limiter.hit("a")
        for _ in range(5):
            self.limiter.hit("a")
        self.clock.now = 10.0
        self.assertTrue(self.limiter.hit("a").allowed)

    def test_idle_keys_are_swept_after_the_window(self) -> None:
        for i in range(1000):
            self.limiter.hit(f"10.0.{i // 256}.{i % 256}")
        self.assertEqual(len(self.limiter), 1000)
        self.clock.now = 1000.0
        self.assertTrue(self.limiter.hit("10.9.9.9").allowed)
        self.assertEqual(len(self.limiter), 1)

    def test_sweep_keeps_keys_still_in_the_window(self) -> None:
        self.limiter.hit("old")
        self.clock.now = 6.0
        self.limiter.hit("recent")
        self.clock.now = 12.0
        self.limiter.hit("new")
        self.assertEqual(len(self.limiter), 2)
        self.assertTrue(self.limiter.hit("recent").allowed)
        self.assertFalse(self.limiter.hit("recent").allowed)

    def test_reset(self) -> None:
        self.limiter.hit("a")
        self.limiter.hit("a")
        self.limiter.reset()
        self.assertTrue(self.limiter.hit("a").allowed)


class TestRateLimitMiddleware(unittest.TestCase):
    def setUp(self) -> None:
        self.app, self.database = make_app(
            RATE_LIMIT_ENABLED=True,
            RATE_LIMIT_MAX_REQUESTS=5,
            AUTH_RATE_LIMIT_MAX_REQUESTS=2,
        )
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.database.dispose()

    def test_auth_routes_use_stricter_limit(self) -> None:
        body = {"email": "nobody@example.com", "password": "Wrong!Pass1"}
        for _ in range(2):
            self.assertEqual(self.client.post("/api/v1/auth/login", json=body).status_code, 401)
        response = self.client.post("/api/v1/auth/login", json=body)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["error"], "RATE_LIMIT_EXCEEDED")
        self.assertFalse(response.json()["success"])
        self.assertGreaterEqual(int(response.headers["Retry-After"]), 1)

    def test_global_limit_applies_before_auth_gate(self) -> None:
        for _ in range(5):
            response = self.client.get("/api/v1/tasks")
            self.assertEqual(response.status_code, 401)
            self.assertIn("RateLimit-Remaining", response.headers)
        response = self.client.get("/api/v1/tasks")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["message"], "Too many requests from this IP, please try again later")

    def test_health_is_exempt(self) -> None:
        for _ in range(10):
            self.assertEqual(self.client.get("/health").status_code, 200)

    def test_forwarded_for_is_the_client_key(self) -> None:
        for _ in range(5):
            self.client.get("/api/v1/tasks", headers={"X-Forwarded-For": "10.0.0.1"})
        blocked = self.client.get("/api/v1/tasks", headers={"X-Forwarded-For": "10.0.0.1"})
        other = self.client.get("/api/v1/tasks", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"})
        self.assertEqual(blocked.status_code, 429)
        self.assertEqual(other.status_code, 401)


if __name__ == "__main__":
    unittest.main()
