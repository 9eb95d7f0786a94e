import time

import redis
from redis.exceptions import RedisError

from app.utils.logging import get_logger
from app.utils.settings import REDIS_SOCKET_TIMEOUT, REDIS_URL

logger = get_logger(__name__)


class RateLimiter:
    """Fixed one-minute window per client key, counted in Redis."""

    def __init__(self, limit: int, url: str | None = None, client: redis.Redis | None = None):
        self.limit = limit
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
        )

    def hit(self, client_key: str) -> bool:
        """Count one request; False once the window is exhausted."""
        window = int(time.time() // 60)
        key = f"ratelimit:{client_key}:{window}"
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, 60)
            count, _ = pipe.execute()
        except RedisError as e:
            # redis down: fail open
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return True
        return count <= self.limit

    @staticmethod
    def retry_after() -> int:
        """Seconds until the current window resets."""
        return 60 - int(time.time()) % 60
