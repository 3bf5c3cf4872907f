import asyncio
import unittest
from types import SimpleNamespace
from unittest import mock

import redis
from fastapi import HTTPException

from office_hours import rate_limiter
from office_hours.rate_limiter import check_rate_limit, create_rate_limiter, get_redis_client
from tests.helpers import FakeRedis


def fake_request(ip="10.0.0.1"):
    return SimpleNamespace(
        headers={}, client=SimpleNamespace(host=ip), state=SimpleNamespace()
    )


class TestCheckRateLimit(unittest.TestCase):

    def setUp(self):
        rate_limiter.memory_cache.clear()

    def test_memory_only_window(self):
        self.assertTrue(check_rate_limit("matching:a", 2, 60, None)[0])
        self.assertTrue(check_rate_limit("matching:a", 2, 60, None)[0])
        allowed, count, ttl = check_rate_limit("matching:a", 2, 60, None)
        self.assertFalse(allowed)
        self.assertEqual(count, 2)
        self.assertLessEqual(ttl, 60)

    def test_keys_are_independent(self):
        check_rate_limit("matching:a", 1, 60, None)
        self.assertFalse(check_rate_limit("matching:a", 1, 60, None)[0])
        self.assertTrue(check_rate_limit("matching:b", 1, 60, None)[0])

    def test_window_seeded_from_redis(self):
        client = FakeRedis()
        client.set("matching:c", 5, ex=30)
        allowed, count, ttl = check_rate_limit("matching:c", 5, 60, client)
        self.assertFalse(allowed)
        self.assertEqual(count, 5)
        self.assertLessEqual(ttl, 30)


class TestRateLimiterDependency(unittest.TestCase):

    def setUp(self):
        rate_limiter.memory_cache.clear()

    def test_raises_429_when_exceeded(self):
        limiter = create_rate_limiter(limit=1, window_seconds=60, key_prefix="test")
        with mock.patch.object(rate_limiter, "get_redis_client", side_effect=ConnectionError("down")):
            asyncio.run(limiter(fake_request()))
            with self.assertRaises(HTTPException) as ctx:
                asyncio.run(limiter(fake_request()))

        self.assertEqual(ctx.exception.status_code, 429)
        self.assertIn("Retry-After", ctx.exception.headers)

    def test_limits_per_client_ip(self):
        limiter = create_rate_limiter(limit=1, window_seconds=60, key_prefix="test")
        with mock.patch.object(rate_limiter, "get_redis_client", side_effect=ConnectionError("down")):
            asyncio.run(limiter(fake_request("10.0.0.1")))
            asyncio.run(limiter(fake_request("10.0.0.2")))


class TestRedisReconnectBackoff(unittest.TestCase):

    def setUp(self):
        rate_limiter.redis_client = None
        rate_limiter.redis_retry_at = 0.0

    def tearDown(self):
        rate_limiter.redis_client = None
        rate_limiter.redis_retry_at = 0.0

    def broken_client(self):
        client = mock.Mock()
        client.ping.side_effect = redis.ConnectionError("connection refused")
        return client

    def test_failure_is_remembered(self):
        broken = self.broken_client()
        with mock.patch.object(rate_limiter, "REDIS_URL", None), mock.patch.object(
            rate_limiter.redis, "Redis", return_value=broken
        ) as factory:
            with self.assertRaises(redis.ConnectionError):
                get_redis_client()
            with self.assertRaises(redis.ConnectionError):
                get_redis_client()

        self.assertEqual(factory.call_count, 1)
        self.assertEqual(broken.ping.call_count, 1)

    def test_reconnects_once_backoff_expires(self):
        healthy = mock.Mock()
        with mock.patch.object(rate_limiter, "REDIS_URL", None), mock.patch.object(
            rate_limiter, "REDIS_RETRY_BACKOFF_SECONDS", 0
        ), mock.patch.object(
            rate_limiter.redis, "Redis", side_effect=[self.broken_client(), healthy]
        ):
            with self.assertRaises(redis.ConnectionError):
                get_redis_client()
            self.assertIs(get_redis_client(), healthy)
            self.assertIs(get_redis_client(), healthy)

    def test_dependency_skips_redis_during_backoff(self):
        rate_limiter.memory_cache.clear()
        limiter = create_rate_limiter(limit=5, window_seconds=60, key_prefix="test")
        broken = self.broken_client()
        with mock.patch.object(rate_limiter, "REDIS_URL", None), mock.patch.object(
            rate_limiter.redis, "Redis", return_value=broken
        ):
            for _ in range(3):
                asyncio.run(limiter(fake_request()))

        self.assertEqual(broken.ping.call_count, 1)


if __name__ == "__main__":
    unittest.main()
