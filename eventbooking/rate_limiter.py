"""
Redis fixed-window rate limiting for sensitive endpoints (login)
"""

import logging
from typing import Optional

import redis
from fastapi import Request

from . import config
from .errors import RateLimitError, StorageError

logger = logging.getLogger(__name__)

# Shared by both connection styles
CLIENT_OPTIONS = {
    "decode_responses": True,
    "socket_connect_timeout": 5,
    "socket_timeout": 5,
    "retry_on_timeout": True,
    "health_check_interval": 30,
}


def _masked(url: str) -> str:
    scheme, _, rest = url.partition("://")
    return f"{scheme}://****@{rest.rsplit('@', 1)[-1]}" if "@" in rest else f"{scheme}://{rest}"


def create_redis_client() -> redis.Redis:
    """Client for REDIS_URL when set, otherwise for REDIS_HOST / REDIS_PORT / REDIS_DB"""
    if config.REDIS_URL:
        logger.info(f"📡 Rate limiter using Redis at {_masked(config.REDIS_URL)}")
        return redis.from_url(config.REDIS_URL, **CLIENT_OPTIONS)

    logger.info(f"📡 Rate limiter using Redis at {config.REDIS_HOST}:{config.REDIS_PORT}/{config.REDIS_DB}")
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        db=config.REDIS_DB,
        password=config.REDIS_PASSWORD,
        ssl=config.REDIS_SSL,
        **CLIENT_OPTIONS,
    )


def check_rate_limit(key: str, limit: int, window_seconds: int, client) -> tuple[bool, int, int]:
    """
    Count one request against a fixed window.

    Uses INCR, and EXPIRE on the first hit of a window, so a window costs at most
    three Redis commands per request.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_count = int(client.incr(key))
    if current_count == 1:
        client.expire(key, window_seconds)
        ttl = window_seconds
    else:
        ttl = int(client.ttl(key))
        if ttl < 0:
            # Key lost its expiry; start the window again
            client.expire(key, window_seconds)
            ttl = window_seconds

    return current_count <= limit, current_count, ttl


class RateLimiter:
    """Owns the Redis client used by rate limit dependencies"""

    def __init__(self, client=None, enabled: bool = config.RATE_LIMIT_ENABLED):
        self._client = client
        self.enabled = enabled

    @property
    def client(self):
        if self._client is None:
            logger.info("🔄 Initializing Redis connection for rate limiting...")
            self._client = create_redis_client()
        return self._client

    def close(self) -> None:
        if isinstance(self._client, redis.Redis):
            self._client.close()
        self._client = None


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency with specific parameters

    Example usage:
        rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    def rate_limiter(request: Request) -> None:
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or not limiter.enabled:
            return

        key = f"{key_prefix}:{get_client_ip(request)}"
        try:
            is_allowed, current_count, ttl = check_rate_limit(
                key, limit, window_seconds, limiter.client
            )
        except redis.RedisError as e:
            logger.error(f"❌ Rate limit check failed: {str(e)}")
            # Fail closed: no login attempts while the counter is unavailable
            raise StorageError("rate_limit_check", key, retryable=True) from e

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise RateLimitError(retry_after=ttl)

    return rate_limiter
