import pytest
import redis
from fastapi.testclient import TestClient

from conftest import PASSWORD
from eventbooking.main import create_app
from eventbooking.rate_limiter import RateLimiter, check_rate_limit


class FakeRedis:
    """The three commands the fixed-window limiter uses"""

    def __init__(self):
        self.counts = {}
        self.expiries = {}

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    def ttl(self, key):
        return self.expiries.get(key, -1)


class BrokenRedis:
    def incr(self, key):
        raise redis.ConnectionError("connection refused")


def test_first_hit_opens_window():
    client = FakeRedis()
    assert check_rate_limit("login:1.2.3.4", 2, 300, client) == (True, 1, 300)
    assert client.expiries["login:1.2.3.4"] == 300


def test_hits_over_limit_are_refused():
    client = FakeRedis()
    for _ in range(2):
        check_rate_limit("k", 2, 60, client)
    allowed, count, ttl = check_rate_limit("k", 2, 60, client)
    assert allowed is False
    assert count == 3
    assert ttl == 60


def test_key_without_expiry_restarts_window():
    client = FakeRedis()
    client.counts["k"] = 4
    allowed, count, ttl = check_rate_limit("k", 10, 60, client)
    assert allowed is True
    assert ttl == 60
    assert client.expiries["k"] == 60


@pytest.fixture
def limited_client(database, users):
    app = create_app(database=database, rate_limiter=RateLimiter(client=FakeRedis(), enabled=True))
    with TestClient(app) as test_client:
        yield test_client


def test_login_is_rate_limited(limited_client):
    for _ in range(10):
        response = limited_client.post("/auth/login", json={"username": "staff", "password": "wrong-password"})
        assert response.status_code == 401

    response = limited_client.post("/auth/login", json={"username": "staff", "password": PASSWORD})
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "300"
    assert response.json()["error"] == "rate_limited"
    assert response.json()["retry_after"] == 300


def test_unavailable_redis_fails_closed(database, users):
    app = create_app(database=database, rate_limiter=RateLimiter(client=BrokenRedis(), enabled=True))
    with TestClient(app) as test_client:
        response = test_client.post("/auth/login", json={"username": "staff", "password": PASSWORD})
    assert response.status_code == 503
    body = response.json()
    assert body["error"] == "storage_error"
    assert body["retryable"] is True
    assert "connection refused" not in body["detail"]


def test_disabled_limiter_never_calls_redis(client, users):
    for _ in range(12):
        response = client.post("/auth/login", json={"username": "staff", "password": "wrong-password"})
        assert response.status_code == 401
