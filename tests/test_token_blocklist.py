import hashlib

import redis
from fastapi.testclient import TestClient

from app import main
from app.services import rate_limiter
from app.services.rate_limiter import RateLimiter
from app.services.token_blocklist import TokenBlocklist
from app.utils import settings


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}

    def set(self, name, value, ex=None):
        self.store[name] = value
        self.expiry[name] = ex

    def exists(self, name):
        return int(name in self.store)


class FakePipeline:
    def __init__(self, counts):
        self.counts = counts
        self.ops = []

    def incr(self, key):
        self.ops.append(("incr", key))

    def expire(self, key, seconds):
        self.ops.append(("expire", key))

    def execute(self):
        key = self.ops[0][1]
        self.counts[key] = self.counts.get(key, 0) + 1
        return [self.counts[key], True]


class FakeCounterRedis:
    def __init__(self):
        self.counts = {}

    def pipeline(self):
        return FakePipeline(self.counts)


class BrokenRedis:
    def pipeline(self):
        raise redis.ConnectionError("connection refused")


class TestTokenBlocklist:
    def test_revoke_stores_hash_with_ttl(self):
        fake = FakeRedis()
        blocklist = TokenBlocklist(client=fake)

        blocklist.revoke("header.payload.signature", 3600)

        key = "revoked:" + hashlib.sha256(b"header.payload.signature").hexdigest()
        assert fake.store == {key: "1"}
        assert fake.expiry[key] == 3600

    def test_is_revoked(self):
        blocklist = TokenBlocklist(client=FakeRedis())
        assert not blocklist.is_revoked("token-a")
        blocklist.revoke("token-a", 10)
        assert blocklist.is_revoked("token-a")
        assert not blocklist.is_revoked("token-b")

    def test_ttl_never_below_one_second(self):
        fake = FakeRedis()
        TokenBlocklist(client=fake).revoke("token", 0)
        assert list(fake.expiry.values()) == [1]


class TestRateLimiter:
    def test_blocks_after_limit(self, monkeypatch):
        # pin the clock inside one window
        monkeypatch.setattr(rate_limiter.time, "time", lambda: 600.0)
        limiter = RateLimiter(limit=2, client=FakeCounterRedis())
        assert limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.1")
        assert not limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.2")

    def test_fails_open_without_redis(self):
        limiter = RateLimiter(limit=1, client=BrokenRedis())
        assert limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.1")

    def test_middleware_answers_429_with_retry_after(self, monkeypatch):
        counter = FakeCounterRedis()
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)
        monkeypatch.setattr(main, "RateLimiter", lambda limit: RateLimiter(limit, client=counter))
        monkeypatch.setattr(rate_limiter.time, "time", lambda: 630.0)

        with TestClient(main.create_app()) as client:
            assert client.get("/health").status_code == 200
            assert client.get("/health").status_code == 200
            response = client.get("/health")

        assert response.status_code == 429
        assert response.json()["error"] == "Too Many Requests"
        assert response.headers["Retry-After"] == "30"
